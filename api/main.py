"""FastAPI app: participant and display sockets, admin commands, and the tick driver."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from api.config import get_game_seed, get_host, get_log_level, get_port
from api.connections import ConnectionHub
from api.models import (
    AdminStartResponse,
    GameStateResponse,
    JoinMessage,
    PlayerMessage,
    game_state_to_public,
)
from game.engine import GameEngine
from game.roster import JoinRejected
from game.rules import MIN_PLAYERS, Phase, TICK_RATE
from game.snapshot import full_state

logger = logging.getLogger(__name__)


async def run_tick_loop(engine: GameEngine, hub: ConnectionHub) -> None:
    """Advance the engine at TICK_RATE and push the results to every client."""
    interval = 1 / TICK_RATE
    while True:
        try:
            engine.tick()
            await hub.deliver(engine.outbox.drain())
            await hub.send_frame(engine)
        except Exception:
            logger.exception("Tick failed; continuing")
        await asyncio.sleep(interval)


def create_app(engine: GameEngine | None = None, run_ticks: bool = True) -> FastAPI:
    """Build the app around one engine. Tests pass run_ticks=False and tick by hand."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if run_ticks:
            task = asyncio.create_task(run_tick_loop(app.state.engine, app.state.hub))
            logger.info("Tick loop running at %d ticks/s", TICK_RATE)
        yield
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Shutting down")

    app = FastAPI(title="Party Elimination Server", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine or GameEngine(seed=get_game_seed())
    app.state.hub = ConnectionHub()

    @app.get("/health", tags=["System"], summary="Health check")
    def health():
        return {"status": "ok"}

    @app.get("/state", response_model=GameStateResponse, tags=["Game"], summary="Full game state")
    def get_state(request: Request):
        """On-demand snapshot, as sent to the display every tick."""
        return game_state_to_public(request.app.state.engine)

    @app.post("/admin/start", response_model=AdminStartResponse, tags=["Admin"], summary="Start the game")
    async def admin_start(request: Request):
        engine: GameEngine = request.app.state.engine
        logger.info("Admin start pressed (%d participants, phase %s)", engine.roster.count(), engine.phase.value)
        started = engine.start_game()
        await request.app.state.hub.deliver(engine.outbox.drain())
        reason = None
        if not started:
            if engine.phase != Phase.LOBBY:
                reason = "Game already in progress"
            else:
                reason = f"At least {MIN_PLAYERS} participants are needed"
        return AdminStartResponse(started=started, phase=engine.phase.value, reason=reason)

    @app.post("/admin/reset", response_model=GameStateResponse, tags=["Admin"], summary="Reset the game")
    async def admin_reset(request: Request):
        engine: GameEngine = request.app.state.engine
        logger.info("Admin reset")
        engine.reset_game()
        await request.app.state.hub.deliver(engine.outbox.drain())
        return game_state_to_public(engine)

    @app.websocket("/ws/player")
    async def player_socket(websocket: WebSocket):
        engine: GameEngine = websocket.app.state.engine
        hub: ConnectionHub = websocket.app.state.hub
        await websocket.accept()
        identity = uuid.uuid4().hex
        hub.add_player(identity, websocket)
        logger.info("New participant connection %s", identity)
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    message = PlayerMessage.validate_json(raw)
                except ValidationError as e:
                    logger.warning("Bad message from %s: %s", identity, e.error_count())
                    await hub.send(websocket, {"type": "error", "payload": {"message": "Invalid message format"}})
                    continue

                if isinstance(message, JoinMessage):
                    try:
                        participant = engine.join(identity, message.name)
                    except JoinRejected as e:
                        await hub.send(
                            websocket,
                            {"type": "error", "payload": {"message": str(e), "reason": e.reason.value}},
                        )
                    else:
                        await hub.send(
                            websocket,
                            {"type": "joined", "payload": {"id": identity, "player": participant.to_dict()}},
                        )
                else:
                    engine.route_input(identity, message.action)
                await hub.deliver(engine.outbox.drain())
        except WebSocketDisconnect:
            pass
        finally:
            hub.remove_player(identity)
            engine.leave(identity)
            await hub.deliver(engine.outbox.drain())

    @app.websocket("/ws/display")
    async def display_socket(websocket: WebSocket):
        engine: GameEngine = websocket.app.state.engine
        hub: ConnectionHub = websocket.app.state.hub
        await websocket.accept()
        hub.add_display(websocket)
        logger.info("Display connected")
        try:
            await hub.send(websocket, {"type": "display_state", "payload": full_state(engine)})
            while True:
                # The display only listens; anything it sends is ignored
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            hub.remove_display(websocket)
            logger.info("Display disconnected")

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(app, host=get_host(), port=get_port())
