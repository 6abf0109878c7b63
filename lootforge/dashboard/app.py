"""FastAPI admin dashboard for the loot box game.

The app is served from inside the bot process (see `LootforgeBot.setup_hook`)
and works on the bot's own game, so weight changes reach the next draw and
`/events` shows the live results. Read-only endpoints expose the
configuration and odds. Changing weights needs the `X-API-Key` header to match
`DASHBOARD_API_KEY`; the dashboard then uses the game's admin credential on the
caller's behalf. With no API key configured every admin endpoint answers 401.
"""
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from lootforge.config import Settings
from lootforge.utils import odds
from lootforge.utils.auth import AdminCredential
from lootforge.utils.errors import InvalidWeights, NotAuthorized
from lootforge.utils.lootbox import LootBoxGame


class WeightsUpdate(BaseModel):
    common: int
    rare: int
    epic: int
    legendary: int


def create_app(
    game: LootBoxGame,
    credential: Optional[AdminCredential] = None,
    api_key: Optional[str] = None,
) -> FastAPI:
    """Build the dashboard app for a running game.

    `api_key` defaults to `DASHBOARD_API_KEY` from the environment.
    """
    if api_key is None:
        api_key = Settings().DASHBOARD_API_KEY

    app = FastAPI(title="Lootforge Dashboard", version="0.1.0")
    app.state.game = game
    api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

    async def require_api_key(header: Optional[str] = Depends(api_key_header)) -> bool:
        if api_key and header and header == api_key:
            return True
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API Key")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/config")
    async def get_config():
        data = game.config.to_dict()
        data["outstanding_boxes"] = game.outstanding_boxes()
        return data

    @app.get("/odds")
    async def get_odds():
        return odds.summary(game.config.weights)

    @app.get("/events")
    async def recent_events(limit: int = 20, auth=Depends(require_api_key)):
        return {"events": game.events.recent(limit), "treasury": game.treasury.balance}

    @app.put("/config/weights")
    async def put_weights(body: WeightsUpdate, auth=Depends(require_api_key)):
        try:
            table = game.update_weights(credential, body.common, body.rare, body.epic, body.legendary)
        except InvalidWeights as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
        except NotAuthorized as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
        return {"weights": table.model_dump()}

    return app
