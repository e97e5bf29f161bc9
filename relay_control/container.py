#relay_control\container.py

"""Dependency injection container - wires all services together."""

from relay_control.config import settings
from relay_control.core.events import LoggingEventEmitter, MultiEventEmitter
from relay_control.engine.controller import SubprocessEngineController
from relay_control.infrastructure.sql.repository import SqlConfigRepository
from relay_control.reconciler.reconciler import Reconciler
from relay_control.warmup.scheduler import WarmupScheduler


# ============================================
# PATHS
# ============================================

policy_paths = settings.policy_paths()


# ============================================
# REPOSITORIES
# ============================================

config_repository = SqlConfigRepository()


# ============================================
# EVENTS
# ============================================

emitters = MultiEventEmitter([
    LoggingEventEmitter()
])


# ============================================
# SERVICES
# ============================================

engine_controller = SubprocessEngineController(
    kumod_binary=settings.kumod_binary,
    kumod_user=settings.kumod_user,
    service_name=settings.service_name,
    systemctl_binary=settings.systemctl_binary,
    validate_timeout_seconds=settings.validate_timeout_seconds,
    restart_timeout_seconds=settings.restart_timeout_seconds,
)

reconciler = Reconciler(
    repository=config_repository,
    paths=policy_paths,
    controller=engine_controller,
    emitters=emitters,
    file_mode=settings.file_mode,
    dir_mode=settings.dir_mode,
)

warmup_scheduler = WarmupScheduler(
    repository=config_repository,
    reconciler=reconciler,
)
