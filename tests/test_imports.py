def test_imports():
    import lpadapter as m
    from lpadapter.engine import Problem, intopt, simplex
    from lpadapter.model import Optimizer, CallbackData
    from lpadapter.config import load_config
    from lpadapter.cli import main

    assert hasattr(m, "__version__")
    assert callable(load_config)
    assert callable(main)
    assert m.Optimizer is Optimizer
    assert Problem
    assert simplex and intopt
    assert CallbackData
