from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.cache import TTLCache
from app.core.clock import Clock, get_clock
from app.core.config import settings
from app.core.db import get_db
from app.core.locks import KeyedLock
from app.main import app, init_state
from app.models import battle, tournament, user  # noqa: F401
from app.services.pokemon import PokemonService
from app.services.tournament import TournamentService

POKEAPI_URL = "https://pokeapi.test/api/v2"

# id, name, types, hp, attack, defense, special-attack, special-defense, speed
POKEDEX = [
    (1, "bulbasaur", ["grass", "poison"], 45, 49, 49, 65, 65, 45),
    (4, "charmander", ["fire"], 39, 52, 43, 60, 50, 65),
    (6, "charizard", ["fire", "flying"], 78, 84, 78, 109, 85, 100),
    (7, "squirtle", ["water"], 44, 48, 65, 50, 64, 43),
    (25, "pikachu", ["electric"], 35, 55, 40, 50, 50, 90),
    (39, "jigglypuff", ["normal", "fairy"], 115, 45, 20, 45, 25, 20),
    (133, "eevee", ["normal"], 55, 55, 50, 45, 65, 55),
    (152, "chikorita", ["grass"], 45, 49, 65, 49, 65, 45),
    (10034, "charizard-mega-x", ["fire", "dragon"], 78, 130, 111, 130, 85, 100),
]

STAT_NAMES = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


def pokeapi_payload(entry: tuple) -> dict[str, Any]:
    pokemon_id, name, types, *stats = entry
    return {
        "id": pokemon_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "sprites": {"front_default": f"https://img.test/{pokemon_id}.png"},
        # Reverse the slots to check they are re-ordered
        "types": [{"slot": i, "type": {"name": t}} for i, t in reversed(list(enumerate(types, 1)))],
        "stats": [
            {"base_stat": value, "effort": 0, "stat": {"name": stat}}
            for stat, value in zip(STAT_NAMES, stats, strict=True)
        ],
    }


class MockPokeAPI:
    """In-memory stand-in for PokeAPI served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[str] = []
        self.offline: set[str] = set()
        self.broken: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v2")
        self.requests.append(path)

        if path == "/pokemon":
            results = [
                {"name": name, "url": f"{POKEAPI_URL}/pokemon/{pokemon_id}/"}
                for pokemon_id, name, *_ in POKEDEX
            ]
            return httpx.Response(200, json={"count": len(results), "results": results})

        if path.startswith("/pokemon/"):
            key = path.removeprefix("/pokemon/").strip("/")
            if key in self.offline:
                msg = "connection refused"
                raise httpx.ConnectError(msg, request=request)
            if key in self.broken:
                return httpx.Response(500, text="internal error")
            for entry in POKEDEX:
                if key in (str(entry[0]), entry[1]):
                    return httpx.Response(200, json=pokeapi_payload(entry))
            return httpx.Response(404, text="Not Found")

        if path.startswith("/type/"):
            type_name = path.removeprefix("/type/").strip("/")
            members = [
                {"slot": 1, "pokemon": {"name": name, "url": f"{POKEAPI_URL}/pokemon/{pid}/"}}
                for pid, name, types, *_ in POKEDEX
                if type_name in types
            ]
            if not members:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, json={"name": type_name, "pokemon": members})

        return httpx.Response(404, text="Not Found")


class MockPokemonService(PokemonService):
    def __init__(self, api: MockPokeAPI, cache: TTLCache | None = None) -> None:
        super().__init__(cache or TTLCache())
        self.api = api

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=POKEAPI_URL, transport=httpx.MockTransport(self.api.handler))


class FakeClock(Clock):
    def __init__(self, now: datetime | None = None) -> None:
        self.current = now or datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def fast_security(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "password_hash_iterations", 1_000)
    monkeypatch.setattr(settings, "jwt_secret", "test-secret")


@pytest.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(db_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def pokeapi() -> MockPokeAPI:
    return MockPokeAPI()


@pytest.fixture
def pokemon_service(pokeapi: MockPokeAPI) -> MockPokemonService:
    return MockPokemonService(pokeapi)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def tournament_service(
    session: AsyncSession,
    pokemon_service: MockPokemonService,
    clock: FakeClock,
    locks: KeyedLock,
) -> TournamentService:
    return TournamentService(
        db=session, pokemon_service=pokemon_service, clock=clock, locks=locks
    )


@pytest.fixture
def api_app(
    db_engine: AsyncEngine, pokemon_service: MockPokemonService, clock: FakeClock
) -> Iterator[Any]:
    init_state(app.state)

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with AsyncSession(db_engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[PokemonService] = lambda: pokemon_service
    app.dependency_overrides[get_clock] = lambda: clock
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(api_app: Any) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def auth_headers(client: httpx.AsyncClient) -> dict[str, str]:
    credentials = {"username": "ash", "password": "pikachu123"}
    response = await client.post("/api/auth/register", json=credentials)
    assert response.status_code == 201

    response = await client.post("/api/auth/login", json=credentials)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}
