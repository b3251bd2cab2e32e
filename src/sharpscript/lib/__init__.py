from .builtins import Builtin, make_builtins, make_default_builtins
from .guards import FileAccessDenied, guard_file_path
from .module_loader import IncludeLoader

__all__ = [
    "Builtin",
    "FileAccessDenied",
    "IncludeLoader",
    "guard_file_path",
    "make_builtins",
    "make_default_builtins",
]
