from filevars.builder import FileVarsBuilder
from filevars.dispatcher import PrintDispatcher, PrintResult
from filevars.registry import FileVarEntry, FileVarRegistry
from filevars.service import FileVarsService
from filevars.settings import FileVarsSettings

__all__ = [
    "FileVarEntry",
    "FileVarRegistry",
    "FileVarsBuilder",
    "FileVarsService",
    "FileVarsSettings",
    "PrintDispatcher",
    "PrintResult",
]
