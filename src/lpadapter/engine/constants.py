from __future__ import annotations

import sys

# Switches
OFF = 0
ON = 1

# Message levels
MSG_OFF = 0
MSG_ERR = 1
MSG_ON = 2
MSG_ALL = 3

# Objective direction
MIN = 1
MAX = 2

# Bound types
FR = 1  # free
LO = 2  # lower bound only
UP = 3  # upper bound only
DB = 4  # double-bounded
FX = 5  # fixed

# Column kinds
CV = 1
IV = 2

# Basis status
BS = 1
NL = 2
NU = 3
NF = 4
NS = 5

# Solution status
UNDEF = 1
FEAS = 2
INFEAS = 3
NOFEAS = 4
OPT = 5
UNBND = 6

# Return codes of the algorithm entry points (0 means the algorithm ran to completion)
EBADB = 0x01
ESING = 0x02
ECOND = 0x03
EBOUND = 0x04
EFAIL = 0x05
EOBJLL = 0x06
EOBJUL = 0x07
EITLIM = 0x08
ETMLIM = 0x09
ENOPFS = 0x0A
ENODFS = 0x0B
EROOT = 0x0C
ESTOP = 0x0D
EMIPGAP = 0x0E
ENOFEAS = 0x0F
ENOCVG = 0x10
EINSTAB = 0x11

# Search-tree callback reasons
IROWGEN = 0x01
IBINGO = 0x02
IHEUR = 0x03
ICUTGEN = 0x04
IBRANCH = 0x05
ISELECT = 0x06
IPREPRO = 0x07

# Simplex method / pricing / ratio test
PRIMAL = 1
DUALP = 2
DUAL = 3
PT_STD = 0x11
PT_PSE = 0x22
RT_STD = 0x11
RT_HAR = 0x22

# Interior-point ordering
ORD_NONE = 0
ORD_QMD = 1
ORD_AMD = 2
ORD_SYMAMD = 3

# Branching technique
BR_FFV = 1  # first fractional variable
BR_LFV = 2  # last fractional variable
BR_MFV = 3  # most fractional variable
BR_DTH = 4  # Driebeck-Tomlin heuristic
BR_PCH = 5  # hybrid pseudo-cost

# Backtracking technique
BT_DFS = 1  # depth first
BT_BFS = 2  # breadth first
BT_BLB = 3  # best local bound
BT_BPH = 4  # best projection

DBL_MAX = sys.float_info.max
DBL_EPSILON = sys.float_info.epsilon
INT_MAX = 2**31 - 1

REASON_NAMES = {
    IROWGEN: "IROWGEN",
    IBINGO: "IBINGO",
    IHEUR: "IHEUR",
    ICUTGEN: "ICUTGEN",
    IBRANCH: "IBRANCH",
    ISELECT: "ISELECT",
    IPREPRO: "IPREPRO",
}
