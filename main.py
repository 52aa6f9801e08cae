import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from controllers.session_controller import TrainingSessionController
from models.provider_catalog import ProviderCatalog
from routes.provider_route import router as provider_router
from routes.session_route import router as session_router
from routes.session_ws import router as session_ws_router
from services.cost_generator import CostGenerator
from services.credential_store import CredentialStore
from services.event_hub import SessionEventHub
from services.iteration_scheduler import IterationScheduler
from services.outcome_policy import OutcomePolicy, RandomOutcomePolicy
from services.session_store import SessionStore
from utils.settings import TrainingSettings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def _unit_label(unit_seconds: float) -> str:
    if unit_seconds == 60:
        return "minutes"
    if unit_seconds == 1:
        return "seconds"
    return f"units of {unit_seconds:g}s"


def build_services(
    app: FastAPI,
    settings: TrainingSettings,
    catalog: Optional[ProviderCatalog] = None,
    policy: Optional[OutcomePolicy] = None,
) -> None:
    """
    Construct the session core and attach it to `app.state`:
      - provider catalog, cost generator and credential store
      - event hub, session store and iteration scheduler
      - the session controller that the routes call into
    """
    catalog = catalog or ProviderCatalog()
    hub = SessionEventHub()
    store = SessionStore(hub)
    scheduler = IterationScheduler(
        store,
        policy or RandomOutcomePolicy(settings.success_probability),
        interval_unit_seconds=settings.retry_interval_unit_seconds,
        unit_label=_unit_label(settings.retry_interval_unit_seconds),
    )
    cost_generator = CostGenerator(catalog, settings.tokens_per_iteration)

    app.state.settings = settings
    app.state.provider_catalog = catalog
    app.state.cost_generator = cost_generator
    app.state.credential_store = CredentialStore(catalog)
    app.state.event_hub = hub
    app.state.session_store = store
    app.state.iteration_scheduler = scheduler
    app.state.session_controller = TrainingSessionController(
        store,
        scheduler,
        catalog,
        cost_generator,
        max_iterations=settings.max_iterations,
        max_retry_interval=settings.max_retry_interval,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager that builds the in-memory session core on startup and
    cancels every running session timer on shutdown.
    """
    if not hasattr(app.state, "session_controller"):
        build_services(app, TrainingSettings.from_env())
    LOGGER.info("Training session service ready")
    try:
        yield
    finally:
        scheduler = getattr(app.state, "iteration_scheduler", None)
        if scheduler is not None:
            await scheduler.shutdown()
        LOGGER.info("Training session service stopped")


def create_app(
    settings: Optional[TrainingSettings] = None,
    policy: Optional[OutcomePolicy] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    When `settings` or `policy` is given the services are built immediately,
    otherwise the lifespan builds them from the environment.
    """
    app = FastAPI(lifespan=lifespan)

    if settings is not None or policy is not None:
        build_services(app, settings or TrainingSettings.from_env(), policy=policy)

    @app.get("/health")
    async def health(request: Request):
        """
        Report whether the session core is wired up and how many timers are live.
        """
        scheduler = getattr(request.app.state, "iteration_scheduler", None)
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "sessions": len(store) if store is not None else 0,
            "active_timers": len(scheduler.active_session_ids()) if scheduler is not None else 0,
        }

    # Register application routers
    app.include_router(provider_router)
    app.include_router(session_router)
    app.include_router(session_ws_router)

    return app


logging.basicConfig(
    level=TrainingSettings.from_env().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
