"""Server-side extension script ("cloud code") loading and dispatch.

The script is a plain Python file. It is executed once at startup with a
``cloud`` registry injected as a global, and registers handlers on it::

    @cloud.define("hello")
    def hello(request):
        return f"Hello {request.params.get('name', 'world')}"

    @cloud.before_save("Task")
    async def default_done(request):
        request.object.setdefault("done", False)

Handlers may be sync or async.
"""

import importlib.util
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from bujo.store.errors import StoreError, SCRIPT_FAILED

logger = logging.getLogger(__name__)

Handler = Callable[["CloudRequest"], Any]


@dataclass
class CloudRequest:
    """What a handler receives: function params, or the object being written."""
    master: bool = False
    params: Dict[str, Any] = field(default_factory=dict)
    class_name: Optional[str] = None
    object: Optional[Dict[str, Any]] = None
    original: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)


class Cloud:
    """Registry of cloud functions and per-class triggers."""

    Error = StoreError

    def __init__(self):
        self.functions: Dict[str, Handler] = {}
        self.triggers: Dict[tuple, Handler] = {}

    # ── Registration ────────────────────────────────────────────────────────

    def define(self, name: str):
        def decorator(fn: Handler) -> Handler:
            self.functions[name] = fn
            return fn
        return decorator

    def _trigger(self, kind: str, class_name: str):
        def decorator(fn: Handler) -> Handler:
            self.triggers[(kind, class_name)] = fn
            return fn
        return decorator

    def before_save(self, class_name: str):
        return self._trigger("beforeSave", class_name)

    def after_save(self, class_name: str):
        return self._trigger("afterSave", class_name)

    def after_delete(self, class_name: str):
        return self._trigger("afterDelete", class_name)

    # ── Dispatch ────────────────────────────────────────────────────────────

    async def run_function(self, name: str, request: CloudRequest) -> Any:
        fn = self.functions.get(name)
        if fn is None:
            raise StoreError(SCRIPT_FAILED, f'Invalid function: "{name}"')
        return await _call(fn, request)

    async def run_before_save(self, class_name: str, request: CloudRequest):
        fn = self.triggers.get(("beforeSave", class_name))
        if fn is not None:
            await _call(fn, request)

    async def run_after(self, kind: str, class_name: str, request: CloudRequest):
        """Run an after-trigger; its failures are logged, never returned to the client."""
        fn = self.triggers.get((kind, class_name))
        if fn is None:
            return
        try:
            await _call(fn, request)
        except Exception as e:
            logger.error(f"{kind} trigger for {class_name} failed: {e}")


async def _call(fn: Handler, request: CloudRequest) -> Any:
    try:
        result = fn(request)
        if inspect.isawaitable(result):
            result = await result
        return result
    except StoreError:
        raise
    except Exception as e:
        raise StoreError(SCRIPT_FAILED, str(e) or e.__class__.__name__)


def load_cloud(path: Optional[str]) -> Cloud:
    """Execute the extension script at ``path`` against a fresh registry.

    A missing script leaves the registry empty; errors inside an existing
    script propagate so a broken deployment fails at startup.
    """
    cloud = Cloud()
    if not path:
        return cloud
    script = Path(path)
    if not script.is_file():
        logger.warning(f"Cloud script {script} not found; no cloud functions registered")
        return cloud

    spec = importlib.util.spec_from_file_location(f"bujo_cloud_{abs(hash(str(script)))}", script)
    module = importlib.util.module_from_spec(spec)
    module.cloud = cloud
    spec.loader.exec_module(module)
    logger.info(
        f"Loaded cloud script {script}: {len(cloud.functions)} function(s), "
        f"{len(cloud.triggers)} trigger(s)"
    )
    return cloud
