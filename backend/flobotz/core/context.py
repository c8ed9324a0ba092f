from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.orm import sessionmaker

from flobotz.core.config import Settings
from flobotz.services.assistant import AssistantService
from flobotz.services.titles import TitleGenerator
from flobotz.services.webhook import WebhookNotifier


@dataclass
class AppContext:
    """Provider clients that live as long as the process.

    Built once in the application lifespan and stored on ``app.state``;
    handlers receive it through ``get_app_context``.
    """

    assistant: AssistantService
    titles: TitleGenerator
    webhook: WebhookNotifier
    session_factory: sessionmaker

    @classmethod
    def from_settings(cls, settings: Settings, session_factory: sessionmaker) -> "AppContext":
        return cls(
            assistant=AssistantService.from_config(settings.get_assistant_config()),
            titles=TitleGenerator.from_config(settings.get_title_config()),
            webhook=WebhookNotifier.from_config(settings.get_webhook_config()),
            session_factory=session_factory,
        )

    async def aclose(self) -> None:
        await self.assistant.aclose()
        await self.webhook.aclose()


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context
