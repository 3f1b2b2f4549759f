"""
Application container and request dependencies
"""

from typing import Optional

from fastapi import Request

from ..config import GestureTransferConfig, get_config
from ..currency import ExchangeRateClient
from ..i18n import LanguagePreference, Translator
from ..session import SessionStore
from ..storage import LocalStorage, create_storage
from ..transfers import TransferHistory
from ..users import UserDirectory


class AppContainer:
    """All services wired together for one application instance"""

    def __init__(
        self,
        settings: Optional[GestureTransferConfig] = None,
        storage: Optional[LocalStorage] = None,
        rate_client: Optional[ExchangeRateClient] = None,
        user_directory: Optional[UserDirectory] = None,
        transfer_history: Optional[TransferHistory] = None
    ):
        self.settings = settings or get_config()
        self.storage = storage or create_storage(self.settings)

        self.session_store = SessionStore(self.storage, self.settings)
        self.session_store.init()

        self.rate_client = rate_client or ExchangeRateClient(settings=self.settings)
        self.user_directory = user_directory or UserDirectory()
        self.transfer_history = transfer_history or TransferHistory()

        self.language = LanguagePreference(self.storage, self.settings.default_language)
        self.language.init()
        self.translator = Translator(self.language)

    async def close(self) -> None:
        await self.rate_client.aclose()
        self.storage.close()


# Dependency to get the container bound to the running app
def get_container(request: Request) -> AppContainer:
    return request.app.state.container
