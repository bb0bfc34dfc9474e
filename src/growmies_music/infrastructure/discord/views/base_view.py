"""View base that remembers its message so it can grey itself out."""

from __future__ import annotations

import logging

import discord

from growmies_music.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class BaseInteractiveView(discord.ui.View):
    def __init__(self, *, timeout: float | None = 180.0) -> None:
        super().__init__(timeout=timeout)
        self._message: discord.Message | None = None

    def set_message(self, message: discord.Message) -> None:
        self._message = message

    async def deactivate(self) -> None:
        """Disable every control and push the change to the attached message."""
        for item in self.children:
            if isinstance(item, discord.ui.Button | discord.ui.Select):
                item.disabled = True
        if self._message is None:
            return
        try:
            await self._message.edit(view=self)
        except discord.HTTPException as exc:
            logger.debug(LogTemplates.VIEW_UPDATE_FAILED, self._message.id, exc)

    async def on_timeout(self) -> None:
        await self.deactivate()
