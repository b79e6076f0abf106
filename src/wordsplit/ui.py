"""FastAPI-powered web UI for playing Word Split in the browser."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import Settings
from .game import DifficultyController, RoundEngine
from .modes import POLICIES, SinglePlayerRun
from .timer import LoopScheduler
from .versus import VersusMatch, VersusSettings
from .words import WordListCache, WordListError, WordPool, load_word_pool

logger = logging.getLogger(__name__)


@dataclass
class SoloSession:
    """A single-player run and the time it was last touched."""

    run: SinglePlayerRun
    last_seen: float = field(default_factory=lambda: time.time())

    def close(self) -> None:
        self.run.detach()


@dataclass
class VersusSession:
    """A hot-seat versus match sharing one screen."""

    match: VersusMatch
    last_seen: float = field(default_factory=lambda: time.time())

    def close(self) -> None:
        self.match.detach()


SETTINGS: Settings = Settings.from_env()
VERSUS_SETTINGS = VersusSettings()
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes

# Loaded once per process on first use.
WORD_POOL: Optional[WordPool] = None

SESSIONS: Dict[str, SoloSession] = {}
MATCHES: Dict[str, VersusSession] = {}
app = FastAPI(title="Word Split", description="Match split word halves against the clock")


def _get_word_pool() -> WordPool:
    global WORD_POOL
    if WORD_POOL is None:
        cache = WordListCache(SETTINGS.cache_file) if SETTINGS.cache_file else None
        try:
            WORD_POOL = load_word_pool(SETTINGS.words_file, SETTINGS.word_length, cache)
        except WordListError as exc:
            logger.error("Word list unavailable: %s", exc)
            raise HTTPException(status_code=503, detail=str(exc)) from exc
    return WORD_POOL


def _new_engine() -> RoundEngine:
    difficulty = DifficultyController(
        baseline=SETTINGS.pool_baseline,
        increment=SETTINGS.pool_increment,
        maximum=SETTINGS.max_pool_size,
    )
    return RoundEngine(
        _get_word_pool(),
        config=SETTINGS.round_config,
        difficulty=difficulty,
        scheduler=LoopScheduler(),
    )


def _cleanup_sessions() -> None:
    """Drop sessions nobody has polled for a while and stop their timers."""

    cutoff = time.time() - SESSION_TTL_SECONDS
    for registry in (SESSIONS, MATCHES):
        expired = [key for key, session in registry.items() if session.last_seen < cutoff]
        for key in expired:
            registry.pop(key).close()


class NewGameRequest(BaseModel):
    """Request payload for starting a single-player run."""

    mode: str = Field(default="classic", description="Single-player mode")

    @field_validator("mode")
    @classmethod
    def ensure_known_mode(cls, value: str) -> str:
        if value not in POLICIES:
            raise ValueError(
                f"Unsupported mode {value!r}. Choose one of {', '.join(POLICIES)}."
            )
        return value


class SelectRequest(BaseModel):
    """Request payload for picking a tile."""

    model_config = ConfigDict(populate_by_name=True)

    tile_index: int = Field(alias="tileIndex", ge=0)


class AcceptRequest(BaseModel):
    """A versus player claiming the current grid."""

    player: int = Field(ge=0, le=1)


def _get_session(game_id: str) -> SoloSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_seen = time.time()
    return session


def _get_match(match_id: str) -> VersusSession:
    try:
        session = MATCHES[match_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Match not found") from exc
    session.last_seen = time.time()
    return session


def _serialize_run(game_id: str, session: SoloSession) -> Dict[str, object]:
    state = session.run.snapshot()
    state["id"] = game_id
    return state


def _serialize_match(match_id: str, session: VersusSession) -> Dict[str, object]:
    state = session.match.snapshot()
    state["id"] = match_id
    return state


def _create_session(mode: str) -> Tuple[str, SoloSession]:
    run = SinglePlayerRun(_new_engine(), POLICIES[mode])
    run.begin()
    session = SoloSession(run=run)
    game_id = uuid.uuid4().hex
    SESSIONS[game_id] = session
    logger.info("Started %s run %s", mode, game_id)
    return game_id, session


def _create_match() -> Tuple[str, VersusSession]:
    match = VersusMatch(_new_engine(), LoopScheduler(), VERSUS_SETTINGS)
    match.start_match()
    session = VersusSession(match=match)
    match_id = uuid.uuid4().hex
    MATCHES[match_id] = session
    logger.info("Started versus match %s", match_id)
    return match_id, session


# Engine calls stay on the event loop thread, so every route touching an
# engine is declared async.


@app.post("/api/game")
async def create_game(request: NewGameRequest) -> Dict[str, object]:
    _cleanup_sessions()
    game_id, session = _create_session(request.mode)
    return _serialize_run(game_id, session)


@app.get("/api/game/{game_id}")
async def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_run(game_id, session)


@app.post("/api/game/{game_id}/select")
async def select_tile(game_id: str, request: SelectRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    try:
        result = session.run.engine.select_tile(request.tile_index)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    state = _serialize_run(game_id, session)
    state["result"] = result.value
    return state


@app.post("/api/game/{game_id}/next")
async def next_round(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    try:
        session.run.next_round()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_run(game_id, session)


@app.post("/api/game/{game_id}/skip")
async def skip_round(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    try:
        session.run.skip()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_run(game_id, session)


@app.post("/api/game/{game_id}/restart")
async def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    try:
        session.run.restart()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_run(game_id, session)


@app.post("/api/versus")
async def create_versus() -> Dict[str, object]:
    _cleanup_sessions()
    match_id, session = _create_match()
    return _serialize_match(match_id, session)


@app.get("/api/versus/{match_id}")
async def get_versus(match_id: str) -> Dict[str, object]:
    session = _get_match(match_id)
    return _serialize_match(match_id, session)


@app.post("/api/versus/{match_id}/accept")
async def accept_grid(match_id: str, request: AcceptRequest) -> Dict[str, object]:
    session = _get_match(match_id)
    accepted = session.match.accept(request.player)
    state = _serialize_match(match_id, session)
    state["accepted"] = accepted
    return state


@app.post("/api/versus/{match_id}/select")
async def select_versus_tile(match_id: str, request: SelectRequest) -> Dict[str, object]:
    session = _get_match(match_id)
    try:
        result = session.match.engine.select_tile(request.tile_index)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    state = _serialize_match(match_id, session)
    state["result"] = result.value
    return state


@app.post("/api/versus/{match_id}/next")
async def next_grid(match_id: str) -> Dict[str, object]:
    session = _get_match(match_id)
    try:
        session.match.next_grid()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_match(match_id, session)


@app.post("/api/versus/{match_id}/new-match")
async def new_match(match_id: str) -> Dict[str, object]:
    session = _get_match(match_id)
    session.match.start_match()
    return _serialize_match(match_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Word Split</title>
    <link rel=\"preconnect\" href=\"https://fonts.googleapis.com\" />
    <link rel=\"preconnect\" href=\"https://fonts.gstatic.com\" crossorigin />
    <link
      href=\"https://fonts.googleapis.com/css2?family=Poppins:wght@400;500;600;700&display=swap\"
      rel=\"stylesheet\"
    />
    <style>
      :root {
        color-scheme: light;
        font-family: 'Poppins', system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(820px, 100%);
      }
      h1 {
        margin: 0 0 0.5rem;
        font-size: clamp(1.8rem, 2.4vw + 1.2rem, 2.6rem);
        text-align: center;
        letter-spacing: 0.06em;
      }
      .tagline {
        text-align: center;
        margin: 0 0 1.75rem;
        color: rgba(19, 32, 58, 0.75);
        font-weight: 500;
      }
      .mode-picker,
      .controls,
      .players {
        display: flex;
        flex-wrap: wrap;
        gap: 1rem;
        justify-content: center;
        align-items: center;
        margin-bottom: 1.25rem;
      }
      button {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
        transition: transform 0.1s ease, box-shadow 0.1s ease;
      }
      button:hover:not(:disabled) {
        transform: translateY(-1px);
        box-shadow: 0 8px 18px rgba(0, 64, 128, 0.12);
      }
      button:disabled {
        cursor: default;
        opacity: 0.6;
      }
      .hud {
        display: flex;
        justify-content: center;
        gap: 2rem;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      #message {
        text-align: center;
        min-height: 1.5rem;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      #message.bad {
        color: #b00020;
      }
      .grid {
        display: grid;
        grid-template-columns: repeat(4, minmax(0, 1fr));
        gap: 0.6rem;
        max-width: 560px;
        margin: 0 auto 1.5rem;
      }
      .tile {
        padding: 1rem 0.5rem;
        border-radius: 12px;
        border: 2px solid rgba(80, 100, 160, 0.25);
        background: rgba(255, 255, 255, 0.95);
        font-size: 1.2rem;
        font-weight: 700;
        letter-spacing: 0.12em;
        text-transform: uppercase;
        text-align: center;
      }
      .tile.selected {
        border-color: #3a66ff;
        box-shadow: 0 0 0 3px rgba(58, 102, 255, 0.35);
      }
      .tile.matched {
        background: rgba(76, 175, 80, 0.18);
        border-color: rgba(56, 142, 60, 0.6);
        color: rgba(27, 94, 32, 0.8);
      }
      .hidden {
        display: none !important;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Word Split</h1>
      <p class=\"tagline\">Join the halves before the clock runs out.</p>

      <section id=\"landing\" class=\"mode-picker\">
        <button id=\"classicButton\">Single player</button>
        <button id=\"continuousButton\">Continuous clock</button>
        <button id=\"versusButton\">Two players</button>
      </section>

      <section id=\"gameArea\" class=\"hidden\">
        <div class=\"hud\">
          <span>Score: <span id=\"score\">0</span></span>
          <span>Time: <span id=\"timer\">&mdash;</span></span>
          <span>Pool: <span id=\"pool\">&mdash;</span></span>
        </div>
        <div id=\"players\" class=\"players hidden\">
          <button id=\"p1Accept\">Player 1 accept</button>
          <span id=\"p1Score\">Player 1: 0</span>
          <span id=\"p2Score\">Player 2: 0</span>
          <button id=\"p2Accept\">Player 2 accept</button>
        </div>
        <div id=\"message\"></div>
        <div id=\"grid\" class=\"grid\"></div>
        <div class=\"controls\">
          <button id=\"nextButton\" class=\"hidden\">Next round</button>
          <button id=\"skipButton\" class=\"hidden\">Skip</button>
          <button id=\"againButton\" class=\"hidden\">Play again</button>
          <button id=\"backButton\">Back</button>
        </div>
      </section>
    </main>

    <script>
      const landing = document.getElementById('landing');
      const gameArea = document.getElementById('gameArea');
      const gridEl = document.getElementById('grid');
      const scoreEl = document.getElementById('score');
      const timerEl = document.getElementById('timer');
      const poolEl = document.getElementById('pool');
      const messageEl = document.getElementById('message');
      const playersEl = document.getElementById('players');
      const p1Accept = document.getElementById('p1Accept');
      const p2Accept = document.getElementById('p2Accept');
      const p1Score = document.getElementById('p1Score');
      const p2Score = document.getElementById('p2Score');
      const nextButton = document.getElementById('nextButton');
      const skipButton = document.getElementById('skipButton');
      const againButton = document.getElementById('againButton');
      const backButton = document.getElementById('backButton');

      const REASONS = {
        time: 'Time is up!',
        wrong: 'Incorrect match!',
        turn_time: 'Turn timer ran out!',
        skip: 'Skipped.',
        complete: 'Round complete!',
      };

      let kind = null;
      let sessionId = null;
      let state = null;
      let pollId = null;

      async function api(path, options = {}) {
        const response = await fetch(path, {
          method: options.method || 'GET',
          headers: { 'Content-Type': 'application/json' },
          body: options.body ? JSON.stringify(options.body) : undefined,
        });
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function base() {
        return kind === 'versus' ? `/api/versus/${sessionId}` : `/api/game/${sessionId}`;
      }

      function outcomeText(outcome) {
        if (!outcome) return '';
        let text = REASONS[outcome.reason] || 'Round over.';
        if (outcome.details && outcome.details.attemptedText) {
          text += ` (${outcome.details.attemptedText.toUpperCase()} is not a word)`;
        }
        return text;
      }

      function renderGrid() {
        gridEl.innerHTML = '';
        if (!state) return;
        state.tiles.forEach((tile) => {
          const div = document.createElement('button');
          div.className = 'tile';
          if (tile.selected) div.classList.add('selected');
          if (tile.matched) div.classList.add('matched');
          div.textContent = tile.text;
          div.disabled = tile.matched || state.status !== 'running' || state.locked;
          div.addEventListener('click', () => selectTile(tile.index));
          gridEl.appendChild(div);
        });
      }

      function render() {
        if (!state) return;
        renderGrid();
        poolEl.textContent = state.poolSize;
        messageEl.classList.remove('bad');
        nextButton.classList.add('hidden');
        skipButton.classList.add('hidden');
        againButton.classList.add('hidden');

        if (kind === 'versus') {
          timerEl.textContent = state.phase === 'playing' ? state.turnRemaining : '—';
          scoreEl.textContent = `${state.scores[0]} : ${state.scores[1]}`;
          p1Score.textContent = `Player 1: ${state.scores[0]}`;
          p2Score.textContent = `Player 2: ${state.scores[1]}`;
          const waiting = state.phase === 'waiting';
          p1Accept.disabled = !waiting;
          p2Accept.disabled = !waiting;
          if (waiting) {
            messageEl.textContent = 'Click Accept when ready!';
          } else if (state.phase === 'playing') {
            messageEl.textContent = `Player ${state.activePlayer + 1} is solving…`;
          } else if (state.phase === 'between') {
            messageEl.textContent = outcomeText(state.outcome);
            nextButton.classList.remove('hidden');
          } else {
            messageEl.textContent = `Player ${state.winner + 1} wins the match!`;
            againButton.classList.remove('hidden');
          }
          return;
        }

        scoreEl.textContent = state.score;
        timerEl.textContent = state.remainingTime;
        if (state.canSkip) skipButton.classList.remove('hidden');
        if (state.gameOver) {
          messageEl.textContent = outcomeText(state.outcome);
          messageEl.classList.add('bad');
          againButton.classList.remove('hidden');
        } else if (state.awaitingNext) {
          messageEl.textContent = outcomeText(state.outcome);
          nextButton.classList.remove('hidden');
        } else {
          messageEl.textContent = '';
        }
      }

      async function refresh() {
        if (!sessionId) return;
        try {
          state = await api(base());
          render();
        } catch (error) {
          messageEl.textContent = error.message;
        }
      }

      async function act(path, body) {
        try {
          state = await api(`${base()}${path}`, { method: 'POST', body });
          render();
        } catch (error) {
          messageEl.textContent = error.message;
          messageEl.classList.add('bad');
        }
      }

      function selectTile(index) {
        act('/select', { tileIndex: index });
      }

      async function start(mode) {
        stopPolling();
        landing.classList.add('hidden');
        gameArea.classList.remove('hidden');
        playersEl.classList.toggle('hidden', mode !== 'versus');
        kind = mode === 'versus' ? 'versus' : 'solo';
        try {
          state = mode === 'versus'
            ? await api('/api/versus', { method: 'POST' })
            : await api('/api/game', { method: 'POST', body: { mode } });
          sessionId = state.id;
          render();
          pollId = setInterval(refresh, 250);
        } catch (error) {
          messageEl.textContent = error.message;
          messageEl.classList.add('bad');
        }
      }

      function stopPolling() {
        if (pollId) clearInterval(pollId);
        pollId = null;
      }

      function backToLanding() {
        stopPolling();
        sessionId = null;
        state = null;
        gridEl.innerHTML = '';
        gameArea.classList.add('hidden');
        landing.classList.remove('hidden');
      }

      document.getElementById('classicButton').addEventListener('click', () => start('classic'));
      document.getElementById('continuousButton').addEventListener('click', () => start('continuous'));
      document.getElementById('versusButton').addEventListener('click', () => start('versus'));
      p1Accept.addEventListener('click', () => act('/accept', { player: 0 }));
      p2Accept.addEventListener('click', () => act('/accept', { player: 1 }));
      nextButton.addEventListener('click', () => act('/next'));
      skipButton.addEventListener('click', () => act('/skip'));
      againButton.addEventListener('click', () => act(kind === 'versus' ? '/new-match' : '/restart'));
      backButton.addEventListener('click', backToLanding);
    </script>
  </body>
</html>
"""
