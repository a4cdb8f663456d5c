from . import auth, core
