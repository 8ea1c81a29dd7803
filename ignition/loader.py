"""
Service module loader.

Resolves the identifier declared by a service (``path``) into the callable
that implements it. Identifiers come in two shapes:

- file paths (``services/db.py``, ``./cache``, ``/opt/app/queue.py``),
  joined to the loader's base path unless they start with ``/``;
- dotted module names (``myapp.services.db``).

Either shape may carry an ``:attribute`` suffix selecting a single member
of the loaded module (``myapp.services.db:create``).
"""

from typing import Any, Callable, Dict, Optional, Tuple
from pathlib import Path
import hashlib
import importlib
import importlib.util
import logging
import os
import sys

from .faults import ModuleLoadError, ModuleNotFoundFault


logger = logging.getLogger("ignition.loader")

# Member returned by require_default() when a module defines it.
DEFAULT_ENTRYPOINT = "setup"


class ModuleLoader:
    """
    Loads service implementations relative to a base path.

    File modules are executed once per resolved path and cached, so two
    services requiring the same file share one module object.
    """

    def __init__(self, base_path: str = "."):
        self.base_path = base_path
        self._cache: Dict[str, Any] = {}

    def require(self, identifier: str) -> Any:
        """
        Load the module (or module member) named by ``identifier``.

        Raises:
            ModuleNotFoundFault: If the file, module or attribute is missing
        """
        target, attribute = self._split_attribute(identifier)

        if self._is_file_path(target):
            module = self._load_file(identifier, self.resolve_path(target))
        else:
            module = self._import_module(identifier, target)

        if attribute is None:
            return module

        try:
            return getattr(module, attribute)
        except AttributeError:
            raise ModuleNotFoundFault(
                identifier, f"module has no attribute '{attribute}'"
            ) from None

    def require_default(self, identifier: str) -> Any:
        """Load ``identifier`` and return its ``setup`` member when it has one."""
        module = self.require(identifier)
        return getattr(module, DEFAULT_ENTRYPOINT, module)

    def resolve_path(self, path: str) -> str:
        """Join ``path`` to the base path unless it is absolute."""
        if path.startswith("/"):
            return path
        return os.path.normpath(os.path.join(self.base_path, path))

    def load_service(self, name: str, spec: Any) -> Callable[..., Any]:
        """
        Obtain the implementation of service ``name``.

        Uses the preloaded ``spec.module`` when set, otherwise
        ``require_default(spec.path)``.

        Raises:
            ModuleLoadError: If loading raises, returns nothing, or returns
                something that cannot be called
        """
        try:
            if spec.module is not None:
                implementation = spec.module
            elif spec.path:
                implementation = self.require_default(spec.path)
            else:
                implementation = None
        except Exception as e:
            raise ModuleLoadError(name, e) from e

        if implementation is None:
            raise ModuleLoadError(name)

        if not callable(implementation):
            raise ModuleLoadError(
                name, TypeError(f"{type(implementation).__name__} object is not callable")
            )

        return implementation

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _split_attribute(identifier: str) -> Tuple[str, Optional[str]]:
        target, sep, attribute = identifier.rpartition(":")
        if sep and target and attribute.isidentifier():
            return target, attribute
        return identifier, None

    @staticmethod
    def _is_file_path(target: str) -> bool:
        return "/" in target or target.endswith(".py") or target.startswith(".")

    def _load_file(self, identifier: str, real_path: str) -> Any:
        path = Path(real_path)

        if path.is_dir():
            path = path / "__init__.py"
        elif not path.exists() and path.suffix != ".py":
            path = path.with_suffix(".py")

        if not path.is_file():
            raise ModuleNotFoundFault(identifier, f"no such file {path}")

        key = str(path.resolve())
        if key in self._cache:
            return self._cache[key]

        digest = hashlib.sha256(key.encode()).hexdigest()[:8]
        module_name = f"_ignition_service_{path.stem}_{digest}"

        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ModuleNotFoundFault(identifier, f"cannot create import spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise

        logger.debug(f"Loaded {identifier} from {path}")
        self._cache[key] = module
        return module

    def _import_module(self, identifier: str, target: str) -> Any:
        try:
            return importlib.import_module(target)
        except ModuleNotFoundError as e:
            if e.name and target.startswith(e.name):
                raise ModuleNotFoundFault(identifier, str(e)) from e
            raise
