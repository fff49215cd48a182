from dependency_injector import containers, providers

from loyaltyapi.config import Settings
from loyaltyapi.providers.youtube.client import YouTubeClient
from loyaltyapi.services.admin_service import AdminService
from loyaltyapi.services.claim_code_service import ClaimCodeService
from loyaltyapi.services.history_service import HistoryService
from loyaltyapi.services.livestream_service import LivestreamService
from loyaltyapi.services.notification_service import NotificationService
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.raffle_service import RaffleService
from loyaltyapi.services.task_service import TaskService
from loyaltyapi.services.tip_service import TipService
from loyaltyapi.services.user_service import UserService
from loyaltyapi.services.wallet_service import WalletService
from loyaltyapi.workers.control import InProcessWorkerControl


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ProviderModule(containers.DeclarativeContainer):
    """External collaborators."""

    config = providers.DependenciesContainer()

    notification_service = providers.Singleton(NotificationService, settings=config.config)
    youtube_client = providers.Singleton(YouTubeClient)
    worker_control = providers.Singleton(InProcessWorkerControl)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    세션(db)은 호출 시 넘김 - loyaltyapi.deps 참고
    """

    config = providers.DependenciesContainer()
    external = providers.DependenciesContainer()

    point_service = providers.Factory(
        PointService,
        settings=config.config,
        notifier=external.notification_service,
    )
    task_service = providers.Factory(TaskService, settings=config.config, point_service=point_service)
    claim_code_service = providers.Factory(
        ClaimCodeService, settings=config.config, point_service=point_service
    )
    tip_service = providers.Factory(TipService, settings=config.config, point_service=point_service)
    raffle_service = providers.Factory(RaffleService, settings=config.config, point_service=point_service)
    history_service = providers.Factory(HistoryService, settings=config.config)
    wallet_service = providers.Factory(WalletService, settings=config.config)
    user_service = providers.Factory(UserService, settings=config.config)
    admin_service = providers.Factory(AdminService)
    livestream_service = providers.Factory(LivestreamService, youtube=external.youtube_client)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "loyaltyapi.routers.livestream_router",
        ],
    )

    config = providers.Container(ConfigModule)
    external = providers.Container(ProviderModule, config=config)
    services = providers.Container(
        ServiceModule, config=config, external=external
    )
