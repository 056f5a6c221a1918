from __future__ import annotations

import heapq
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from chessai.engine.game import Game
from chessai.eval import evaluate_for


logger = logging.getLogger(__name__)

MATE_SCORE = 100_000_000.0
# Outside any reachable score: mate score plus depth bonus plus heuristics
INF = 1_000_000_000_000.0


@dataclass
class SearchConfig:
    depth: int = 8
    breadth: Optional[int] = 5  # None searches every candidate


@dataclass
class SearchResult:
    best_move: Optional[str]
    score: Optional[float]
    nodes: int
    depth: int
    breadth: Optional[int]
    time_ms: int


def _leaf(game: Game, move_count: int, root_white: bool) -> float:
    return evaluate_for(game.encoding(), move_count, root_white)


def _terminal(game: Game, depth: int, root_white: bool) -> Optional[float]:
    # Checkmate dominates heuristics; nearer mates score further from zero
    if game.game_over:
        mated_root = game.white_to_move == root_white
        bound = MATE_SCORE + depth
        return -bound if mated_root else bound
    if not game.position.legal_moves:
        return 0.0
    return None


class SearchService:
    """Depth- and breadth-limited minimax with alpha-beta pruning.

    Candidates at every node are ranked by their one-ply evaluation and only
    the first ``breadth`` of them are searched, so results approximate full
    minimax. Each explored move is played on a cloned board.
    """

    def __init__(self, config: Optional[SearchConfig] = None) -> None:
        self.config = config or SearchConfig()
        # Game-phase proxy handed to the evaluator; one per search call
        self.move_count = 0

    def search(
        self,
        game: Game,
        depth: Optional[int] = None,
        breadth: Optional[int] = None,
        *,
        move_count: Optional[int] = None,
    ) -> SearchResult:
        depth = self.config.depth if depth is None else depth
        breadth = self.config.breadth if breadth is None else breadth
        if depth < 1:
            raise ValueError("depth must be >= 1")
        if breadth is not None and breadth < 1:
            raise ValueError("breadth must be >= 1")
        base_count = self.move_count if move_count is None else move_count
        root_white = game.white_to_move
        start = time.perf_counter()
        nodes = 0

        def ranked(node: Game, maximizing: bool, mc: int) -> List[Tuple[float, str, Game]]:
            heap: List[Tuple[float, str, Game]] = []
            for name in node.position.legal_moves:
                child = node.child(name)
                score = _leaf(child, mc, root_white)
                # Move strings are unique, so ties never compare games
                heapq.heappush(heap, (-score if maximizing else score, name, child))
            limit = len(heap) if breadth is None else min(breadth, len(heap))
            return [heapq.heappop(heap) for _ in range(limit)]

        def alphabeta(
            node: Game, d: int, alpha: float, beta: float, maximizing: bool, mc: int
        ) -> Tuple[float, Optional[str]]:
            nonlocal nodes
            nodes += 1
            terminal = _terminal(node, d, root_white)
            if terminal is not None:
                return terminal, None
            if d == 0:
                return _leaf(node, mc, root_white), None

            best = -INF if maximizing else INF
            best_move: Optional[str] = None
            for _, name, child in ranked(node, maximizing, mc):
                score, _ = alphabeta(child, d - 1, alpha, beta, not maximizing, mc + 1)
                if best_move is None:
                    best_move = name
                if maximizing:
                    if score > best:
                        best, best_move = score, name
                    alpha = max(alpha, best)
                else:
                    if score < best:
                        best, best_move = score, name
                    beta = min(beta, best)
                if alpha >= beta:
                    break
            return best, best_move

        score, best_move = alphabeta(game, depth, -INF, INF, True, base_count)
        if move_count is None:
            self.move_count += 1
        time_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(
            "search done",
            extra={
                "depth": depth,
                "breadth": breadth,
                "nodes": nodes,
                "best_move": best_move,
                "time_ms": time_ms,
            },
        )
        return SearchResult(
            best_move=best_move,
            score=score if best_move is not None else None,
            nodes=nodes,
            depth=depth,
            breadth=breadth,
            time_ms=time_ms,
        )

    def best_move(self, game: Game) -> Optional[str]:
        """Return the chosen move string, or ``None`` when no move exists."""
        return self.search(game).best_move


def minimax(game: Game, depth: int, move_count: int = 0) -> Tuple[float, Optional[str]]:
    """Plain minimax without pruning or breadth cap, for verification.

    Scores are from the point of view of the side to move in ``game`` and
    use the same leaf and terminal rules as :class:`SearchService`.
    """
    root_white = game.white_to_move

    def visit(node: Game, d: int, maximizing: bool, mc: int) -> Tuple[float, Optional[str]]:
        terminal = _terminal(node, d, root_white)
        if terminal is not None:
            return terminal, None
        if d == 0:
            return _leaf(node, mc, root_white), None
        best = -INF if maximizing else INF
        best_move: Optional[str] = None
        for name in sorted(node.position.legal_moves):
            score, _ = visit(node.child(name), d - 1, not maximizing, mc + 1)
            if (maximizing and score > best) or (not maximizing and score < best):
                best, best_move = score, name
        return best, best_move

    return visit(game, depth, True, move_count)
