from windbarb.services.home_assistant_client import HomeAssistantClient
from windbarb.services.refresher import WindSeriesRefresher
from windbarb.services.wind_service import WindSeriesService

__all__ = ["HomeAssistantClient", "WindSeriesRefresher", "WindSeriesService"]
