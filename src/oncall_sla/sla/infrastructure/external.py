"""
SLA Policy File Integration
============================

YAML policy file with hot-reload support:
- PyYAML for parsing
- watchdog for file change notifications

File layout::

    teams:
      payments:
        name: Payments
        business_hours_only: true
        business_window: {start: "09:00", end: "17:00"}
        business_days: [1, 2, 3, 4, 5]
        timezone: America/New_York
        response_targets: {critical: 15, high: 30, medium: 60, low: 240}
        resolution_targets: {critical: 240, high: 480, medium: 1440, low: 2880}

Clock times must be quoted; YAML reads an unquoted ``17:00`` as a number.
"""

import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from oncall_sla.config import settings
from oncall_sla.core import ApplicationException, ConfigurationException, InvalidPolicy
from oncall_sla.shared.infrastructure.logging import get_logger
from oncall_sla.sla.application.services import IPolicyProvider
from oncall_sla.sla.domain import TeamSLAPolicy, validate_policy

logger = get_logger(__name__)

PolicySnapshot = Tuple[Dict[str, TeamSLAPolicy], Dict[str, str]]


class PolicyFileHandler(FileSystemEventHandler):
    """Watchdog event handler for policy file changes."""

    def __init__(self, config_manager: "PolicyConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def _handle(self, path) -> None:
        if Path(path).resolve() == self.config_path.resolve():
            logger.info(f"Policy file changed: {path}")
            self.config_manager.reload()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        self._handle(event.src_path)

    def on_created(self, event):
        if event.is_directory:
            return
        self._handle(event.src_path)

    def on_moved(self, event):
        # Editors that save via rename land here.
        if event.is_directory:
            return
        self._handle(event.dest_path)


def parse_policy_document(data: object) -> PolicySnapshot:
    """
    Validate a parsed policy document.

    Returns:
        (policies, team_names) keyed by team id

    Raises:
        ConfigurationException: when the document shape is wrong
        InvalidPolicy: when a team entry is invalid
    """
    if data is None:
        return {}, {}
    if not isinstance(data, dict):
        raise ConfigurationException("Policy file must contain a mapping", {"type": type(data).__name__})

    teams = data.get("teams") or {}
    if not isinstance(teams, dict):
        raise ConfigurationException("'teams' must be a mapping of team id to policy")

    policies: Dict[str, TeamSLAPolicy] = {}
    team_names: Dict[str, str] = {}
    for raw_team_id, entry in teams.items():
        team_id = str(raw_team_id)
        if entry is None:
            entry = {}
        if not isinstance(entry, dict):
            raise InvalidPolicy([f"teams.{team_id}"], f"Policy for team '{team_id}' must be a mapping")
        entry = dict(entry)
        team_names[team_id] = str(entry.pop("name", team_id))
        entry["team_id"] = team_id
        try:
            policies[team_id] = validate_policy(entry)
        except InvalidPolicy as exc:
            fields = [f"teams.{team_id}.{field}" for field in exc.fields]
            raise InvalidPolicy(
                fields,
                f"Invalid SLA policy for team '{team_id}': " + ", ".join(exc.fields),
                details={**exc.details, "fields": sorted(fields), "team_id": team_id},
            ) from exc

    return policies, team_names


class PolicyConfigManager(IPolicyProvider):
    """
    Thread-safe team policy provider with hot-reload support.

    Uses watchdog to monitor the policy file and swap in the new policies
    without restarting the service. A reload that fails validation keeps the
    previous snapshot.
    """

    def __init__(self, path: Optional[Path] = None):
        self._policies: Dict[str, TeamSLAPolicy] = {}
        self._team_names: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._path: Optional[Path] = Path(path) if path is not None else None
        self._observer = None

    def load(self, path: Optional[Path] = None) -> Dict[str, TeamSLAPolicy]:
        """
        Initial policy load. Errors propagate so a bad file fails startup.

        Raises:
            ConfigurationException: malformed YAML or document shape
            InvalidPolicy: an invalid team entry
        """
        if path is not None:
            self._path = Path(path)
        elif self._path is None:
            self._path = Path(settings.policy_config_path)

        policies, team_names = self._load_from_file(self._path)
        with self._lock:
            self._policies, self._team_names = policies, team_names
        logger.info("SLA policies loaded", extra={"path": str(self._path), "teams": len(policies)})
        return dict(policies)

    def _load_from_file(self, path: Path) -> PolicySnapshot:
        """Load and validate the YAML policy file."""
        if not path.exists():
            logger.warning(f"SLA policy file not found: {path}, no teams are tracked")
            return {}, {}

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Malformed SLA policy file: {path}", {"error": str(e)}) from e

        return parse_policy_document(data)

    def reload(self) -> bool:
        """Reload policies from file, keeping the current ones on failure."""
        if self._path is None:
            return False

        try:
            policies, team_names = self._load_from_file(self._path)
        except ApplicationException as e:
            logger.error(f"Failed to reload SLA policies: {e.message}", extra={"details": e.details})
            return False

        with self._lock:
            self._policies, self._team_names = policies, team_names
        logger.info("SLA policies reloaded successfully", extra={"teams": len(policies)})
        return True

    def start_watching(self) -> None:
        """
        Start watching the policy file for changes.

        Skips watching if the file doesn't exist or the platform has no
        file notification support.
        """
        if self._path is None:
            raise RuntimeError("Policies not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(f"Policy file doesn't exist, skipping file watch: {self._path}")
            return

        try:
            self._observer = Observer()
            handler = PolicyFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info(f"Started watching policy file: {self._path}")
        except OSError as e:
            logger.warning(f"File watching not available, using static policies: {e}")
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the policy file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    def get_policy(self, team_id: str) -> Optional[TeamSLAPolicy]:
        with self._lock:
            return self._policies.get(team_id)

    def get_policies(self) -> Dict[str, TeamSLAPolicy]:
        with self._lock:
            return dict(self._policies)

    def get_team_names(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._team_names)


def create_policy_provider(path: Optional[Path] = None, watch: Optional[bool] = None) -> PolicyConfigManager:
    """Load the policy file and, unless disabled in settings, start watching it."""
    manager = PolicyConfigManager(path)
    manager.load()
    if watch is None:
        watch = settings.watch_policy_config
    if watch:
        manager.start_watching()
    return manager
