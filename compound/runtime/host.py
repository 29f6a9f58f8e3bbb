"""Host facade tying discovery, scheduling and teardown together."""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from compound.components.descriptor import ComponentRecord, ComponentState
from compound.components.discovery import discover
from compound.config.binder import BindOutcome, ConfigBinder
from compound.config.store import ConfigDocument, ConfigStore
from compound.core import config as core_config
from compound.core.config import Settings
from compound.core.errors import CompoundError, HostSetupError
from compound.runtime.registry import ComponentRegistry
from compound.runtime.scheduler import LoadReport, LoadScheduler

_log = logging.getLogger(__name__)


class ComponentHost:
    """Runs one load cycle over a discovered component set.

    Example:
        host = ComponentHost(Settings(data_dir=Path('data')))
        report = host.enable('myplugin.components')
        economy = host.get_component('economy')
        ...
        host.disable()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: ConfigStore | None = None,
        binder: ConfigBinder | None = None,
        colorizer: Callable[[str], str] | None = None,
    ):
        self.settings = settings or core_config.settings
        self.store = store or ConfigStore(self.settings.data_dir)
        self.binder = binder or ConfigBinder(self.store, colorizer=colorizer, color_char=self.settings.color_char)
        self.registry: Optional[ComponentRegistry] = None
        self.scheduler: Optional[LoadScheduler] = None
        self._report: Optional[LoadReport] = None
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def report(self) -> Optional[LoadReport]:
        return self._report

    def setup_folders(self) -> Path:
        folder = self.settings.components_path
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            _log.error("unable to create component folder path=%s err=%s", folder, e)
            raise HostSetupError(f"unable to create component folder '{folder}': {e}") from e
        return folder

    def enable(self, source: Any) -> LoadReport:
        if self._enabled:
            raise CompoundError('components were already enabled for this host')
        folder = self.setup_folders()
        self._enabled = True
        _log.info("loading components folder=%s", folder)

        self.registry = ComponentRegistry()
        self.scheduler = LoadScheduler(self.registry, self.binder, strict_config=self.settings.strict_config)
        descriptors = discover(source)
        if not descriptors:
            _log.info("no components found")
            self._report = LoadReport()
            return self._report

        _log.info("found components: [%s]", ', '.join(descriptors))
        for name in descriptors:
            _log.debug("component name=%s status=found", name)
        self._report = self.scheduler.run(descriptors)
        _log.info(
            "component loading finished loaded=%d failed=%d deadlocked=%d passes=%d",
            len(self._report.loaded), len(self._report.failed), len(self._report.deadlocked), self._report.passes,
        )
        return self._report

    def disable(self) -> List[str]:
        """Tear down loaded components; returns the names whose unload failed."""
        if self.registry is None:
            return []
        failures = self.registry.teardown()
        self.registry = None
        self.scheduler = None
        return failures

    def _require_registry(self) -> ComponentRegistry:
        if self.registry is None:
            raise CompoundError('components are not enabled')
        return self.registry

    def get_component(self, name: str) -> Any:
        return self._require_registry().get(name)

    def component_state(self, name: str) -> Optional[ComponentState]:
        return self._require_registry().state(name)

    def records(self) -> List[ComponentRecord]:
        return self.registry.records() if self.registry is not None else []

    def inject_config(
        self,
        obj: Any,
        default_path: str | None = None,
        base_key: str | None = None,
        default_document: ConfigDocument | None = None,
    ) -> BindOutcome:
        return self.binder.bind(obj, default_document=default_document, default_path=default_path, base_key=base_key)

    def load_config(self, path: str) -> Optional[ConfigDocument]:
        return self.store.load(path)
