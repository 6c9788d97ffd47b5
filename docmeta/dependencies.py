from __future__ import annotations
from docmeta.clients.tika_client import TikaClient
from docmeta.services.extraction_service import ExtractionService
from docmeta.services.path_resolver import SettingsPathResolver


class Container:
    def __init__(self) -> None:
        self.tika = TikaClient()
        self.paths = SettingsPathResolver()
        self.extraction = ExtractionService(engine=self.tika, resolver=self.paths)

    async def close(self) -> None:
        await self.extraction.close()
        await self.tika.close()
