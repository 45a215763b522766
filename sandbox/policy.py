"""
Sandbox policy definitions and import/builtin guards.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Iterable, Sequence
from types import ModuleType
from typing import cast

BLOCKED_MODULES = [
    "os",
    "sys",
    "subprocess",
    "socket",
    "urllib",
    "requests",
    "http",
    "ctypes",
    "importlib",
    "multiprocessing",
    "threading",
    "signal",
    "shutil",
    "pathlib",
    "io",
    "builtins",
    "gc",
    "inspect",
]

BLOCKED_BUILTINS = [
    "eval",
    "exec",
    "compile",
    "open",
    "file",
    "input",
    "raw_input",
    "breakpoint",
    "globals",
    "locals",
    "vars",
    "memoryview",
    "help",
    "exit",
    "quit",
]

ALLOWED_MODULES = [
    "math",
    "cmath",
    "random",
    "itertools",
    "functools",
    "operator",
    "collections",
    "heapq",
    "bisect",
    "statistics",
    "string",
    "re",
    "typing",
    "dataclasses",
    "enum",
    "fractions",
    "decimal",
    "copy",
    "time",
    "warnings",
]

ImportHook = Callable[
    [str, dict[str, object] | None, dict[str, object] | None, Sequence[str], int],
    ModuleType,
]


def _normalize_modules(modules: Iterable[str] | None) -> set[str]:
    return {name for name in (modules or [])}


def build_import_guard(
    allowed_modules: Iterable[str] | None = None,
    blocked_modules: Iterable[str] | None = None,
) -> ImportHook:
    """
    Build a restricted __import__ hook that only allows allowlisted modules
    and explicitly blocks denied modules.
    """
    allowed = _normalize_modules(allowed_modules or ALLOWED_MODULES)
    blocked = _normalize_modules(blocked_modules or BLOCKED_MODULES)
    original_import = cast(ImportHook, builtins.__import__)
    views: dict[str, ModuleType] = {}

    def guarded_import(
        name: str,
        globals: dict[str, object] | None = None,
        locals: dict[str, object] | None = None,
        fromlist: Sequence[str] = (),
        level: int = 0,
    ) -> ModuleType:
        if level != 0:
            raise ImportError("Relative imports are blocked by sandbox policy")
        root = name.split(".")[0]
        if root in blocked or name in blocked:
            raise ImportError(f"Import of '{root}' blocked by sandbox policy")
        if root not in allowed:
            raise ImportError(f"Import of '{root}' is not allowlisted")
        return public_view(original_import(name, globals, locals, fromlist, level), views)

    return guarded_import


def public_view(module: ModuleType, views: dict[str, ModuleType]) -> ModuleType:
    """
    Return a copy of ``module`` holding only its public attributes.

    Re-exported modules (``typing.sys``, ``random._os``) are dropped;
    submodules of the same package are kept as views themselves.
    """
    name = module.__name__
    if name in views:
        return views[name]
    view = ModuleType(name, module.__doc__)
    views[name] = view
    for attr, value in vars(module).items():
        if attr.startswith("_") and attr != "__all__":
            continue
        if isinstance(value, ModuleType):
            if not value.__name__.startswith(f"{name}."):
                continue
            value = public_view(value, views)
        setattr(view, attr, value)
    return view


def build_safe_builtins(
    allowed_modules: Iterable[str] | None = None,
    blocked_names: Iterable[str] | None = None,
) -> dict[str, object]:
    """Return a fresh builtins mapping for one execution.

    The shared ``builtins`` module is left untouched; blocked names are
    replaced in the copy so every call starts from a clean mapping.
    """
    blocked = _normalize_modules(blocked_names or BLOCKED_BUILTINS)
    safe = dict(vars(builtins))
    for name in blocked:
        if name in safe:
            safe[name] = _blocked_builtin(name)
    safe["__import__"] = build_import_guard(allowed_modules=allowed_modules)
    return safe


def _blocked_builtin(name: str) -> Callable[..., None]:
    def _blocked(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError(f"{name}() blocked by sandbox policy")

    _blocked.__name__ = name
    return _blocked
