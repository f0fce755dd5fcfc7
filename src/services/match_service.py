"""
Orchestration of communication from API router to business logic and persistence layers (and the reverse direction).

The service is the instance of record for every match: a move token from one player is replayed on the stored game,
and the outcome (accepted or not, the new position, check / mate / draw) is what gets sent back to both players.
Who plays which color and whose turn it is gets decided here. The chess rules only know about colors.
"""

import logging
from typing import Optional
from uuid import UUID

from src.api.models import (
    CreateMatchRequest,
    DeleteMatchRequest,
    GetMatchRequest,
    JoinMatchRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    MatchResponse,
    MoveRequest,
    MoveResponse,
    ResignRequest,
    TakeBackRequest,
)
from src.chess.fen import STARTING_FEN
from src.chess.game import DrawPolicy, Game, GameState
from src.chess.moves import build_uci
from src.chess.pieces import Color as DomainColor
from src.chess.pieces import PieceType as DomainPieceType
from src.chess.square import Square
from src.core.config import Settings
from src.core.exceptions import (
    GameOverError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    NoHistoryError,
    NotYourTurnError,
    RepositoryError,
)
from src.core.models import MatchModel
from src.core.shared_types import Color, Status
from src.db.repository import MatchRepository

logger = logging.getLogger(__name__)

GAME_STATE_TO_STATUS: dict[GameState, Status] = {
    GameState.IN_PROGRESS: Status.IN_PROGRESS,
    GameState.CHECK: Status.IN_PROGRESS,
    GameState.CHECKMATE: Status.CHECKMATE,
    GameState.STALEMATE: Status.STALEMATE,
    GameState.DRAW: Status.DRAW,
}
FINISHED_STATUSES = {Status.CHECKMATE, Status.STALEMATE, Status.DRAW, Status.RESIGNED}


def draw_policy_from_settings(settings: Settings) -> DrawPolicy:
    return DrawPolicy(
        fifty_move_limit=settings.fifty_move_limit,
        repetition_limit=settings.repetition_limit,
        insufficient_material=settings.insufficient_material,
    )


def to_shared_color(color: DomainColor) -> Color:
    return Color[color.name]


class MatchService:
    """Orchestration of layers for a chess match between two players."""

    def __init__(
        self, repository: MatchRepository, draw_policy: Optional[DrawPolicy] = None
    ) -> None:
        self.repo = repository
        self.draw_policy = draw_policy or draw_policy_from_settings(Settings.from_env())

    # -- API routes logic ---
    def create_match(self, request: CreateMatchRequest) -> MatchResponse:
        """First player requested to create a new match."""

        # Importing the position validates it
        game = Game.from_fen(request.starting_fen or STARTING_FEN, self.draw_policy)
        new_match = MatchModel(
            starting_fen=game.starting_fen,
            current_fen=game.to_fen(),
            moves_uci=[],
            registered_players={request.color.value: request.player_name},
            status=Status.WAITING_FOR_PLAYERS.value,
        )

        stored_match, match_id = self.repo.create_match(new_match)
        logger.info(
            "Match %s created by %s playing %s",
            match_id,
            request.player_name,
            request.color.value,
        )
        return self._create_match_response(match_id, stored_match)

    def join_match(self, request: JoinMatchRequest) -> MatchResponse:
        """Second player requested to join a match. Gets the color that is left."""

        match = self._fetch_match(request.match_id)
        if match.status != Status.WAITING_FOR_PLAYERS:
            raise GameStateError(
                f"Cannot join this match. Match is not accepting new players. status: {match.status}"
            )
        if request.player_name in match.registered_players.values():
            raise GameStateError(
                f"Player {request.player_name} already plays in this match."
            )

        taken_color = Color(next(iter(match.registered_players)))
        player_color = Color.BLACK if taken_color == Color.WHITE else Color.WHITE
        match.registered_players[player_color.value] = request.player_name

        # the imported position may already be decided
        game = self._replay(match)
        match.status = GAME_STATE_TO_STATUS[game.state].value

        self._store(request.match_id, match)
        logger.info(
            "%s joined match %s playing %s",
            request.player_name,
            request.match_id,
            player_color.value,
        )
        return self._create_match_response(request.match_id, match)

    def get_match(self, request: GetMatchRequest) -> MatchResponse:
        """
        Retrieve current match state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        match = self._fetch_match(request.match_id)
        return self._create_match_response(request.match_id, match)

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """
        Service will request the set of legal moves.
        ----
        These can be used to display to the user (optionally only for the piece on `request.square`).

        1. Check if it is your turn
        2. Yes? Generate legal moves and return a list of moves.
        """
        match = self._fetch_match(request.match_id)
        self._assert_in_progress(match)
        game = self._replay(match)
        player_color = self._assert_your_turn(match, game, request.player_name)

        if request.square:
            try:
                square = Square.from_algebraic(request.square)
            except ValueError as exc:
                raise InvalidRequestError(str(exc)) from exc
            moves = game.legal_moves_from(square)
        else:
            moves = game.legal_moves()
        return LegalMovesResponse(
            match_id=request.match_id,
            player_name=request.player_name,
            color=player_color,
            legal_moves=[move.to_uci() for move in moves],
        )

    def submit_move(self, request: MoveRequest) -> MoveResponse:
        """
        Attempt a move
        -----

        An illegal move is not an error for the match: it is answered with a rejected MoveResponse and nothing is stored.
        Moving out of turn, or in a match that is not running, raises.
        """
        match = self._fetch_match(request.match_id)
        self._assert_in_progress(match)
        game = self._replay(match)
        self._assert_your_turn(match, game, request.player_name)

        move_uci = build_uci(
            from_square_alg=request.from_square,
            to_square_alg=request.to_square,
            promotion=(
                DomainPieceType[request.promote_to.name]
                if request.promote_to
                else None
            ),
        )
        try:
            game.apply_uci(move_uci)
        except IllegalMoveError as exc:
            logger.info(
                "Rejected %s from %s in match %s: %s",
                move_uci,
                request.player_name,
                request.match_id,
                exc,
            )
            return MoveResponse(
                match_id=request.match_id,
                move=move_uci,
                accepted=False,
                reason=str(exc),
                fen_state=match.current_fen,
                status=Status(match.status),
                is_check=game.is_check,
            )

        self._record_game(match, game)
        self._store(request.match_id, match)
        logger.info(
            "Match %s: %s played %s (%s)",
            request.match_id,
            request.player_name,
            move_uci,
            match.status,
        )
        draw_reason = game.draw_reason
        return MoveResponse(
            match_id=request.match_id,
            move=move_uci,
            accepted=True,
            fen_state=match.current_fen,
            status=Status(match.status),
            is_check=game.is_check,
            draw_reason=draw_reason.name.lower() if draw_reason else None,
            winner=match.winner,
        )

    def take_back(self, request: TakeBackRequest) -> MatchResponse:
        """
        Take back the last move. Only the player who made it can ask, as long as the opponent did not answer yet.
        Also works right after the move ended the game (but not after a resignation).
        """
        match = self._fetch_match(request.match_id)
        if match.status in (Status.WAITING_FOR_PLAYERS, Status.RESIGNED):
            raise GameStateError(
                f"Cannot take back a move in this match. status: {match.status}"
            )
        player_color = self._get_player_color(match, request.player_name)
        if not match.moves_uci:
            raise NoHistoryError("There is no move to take back.")

        game = self._replay(match)
        if to_shared_color(game.color_to_move) == player_color:
            raise NotYourTurnError(
                f"Only the player who made the last move can take it back. {request.player_name} is to move."
            )

        move = game.undo()
        self._record_game(match, game)
        self._store(request.match_id, match)
        logger.info(
            "Match %s: %s took back %s", request.match_id, request.player_name, move
        )
        return self._create_match_response(request.match_id, match)

    def resign(self, request: ResignRequest) -> MatchResponse:
        """A player gives up, the opponent wins. Allowed at any moment of a running match."""
        match = self._fetch_match(request.match_id)
        self._assert_in_progress(match)
        player_color = self._get_player_color(match, request.player_name)

        opponent_color = Color.BLACK if player_color == Color.WHITE else Color.WHITE
        match.status = Status.RESIGNED.value
        match.winner = match.registered_players[opponent_color.value]
        self._store(request.match_id, match)
        logger.info("Match %s: %s resigned", request.match_id, request.player_name)
        return self._create_match_response(request.match_id, match)

    def delete_match(self, request: DeleteMatchRequest) -> None:
        """Handle a request to delete a Match record."""
        if self.repo.delete_match(request.match_id) is None:
            raise RepositoryError(f"Match with {request.match_id=} not found.")
        logger.info("Match %s deleted", request.match_id)

    # -- Internal helpers --
    def _create_match_response(
        self, match_id: UUID, model: MatchModel
    ) -> MatchResponse:
        """Convert info in MatchModel to a MatchResponse (for match with given ID.)"""
        return MatchResponse(
            match_id=match_id,
            players=model.registered_players,
            status=Status(model.status),
            fen_state=model.current_fen,
            starting_state=model.starting_fen,
            move_history=model.moves_uci,
            winner=model.winner,
        )

    def _fetch_match(self, match_id: UUID) -> MatchModel:
        """Attempt to find the match in the repository and raise error if it fails."""
        match = self.repo.get_match(match_id)
        if match is None:
            raise RepositoryError(f"Match with {match_id=} not found.")
        return match

    def _store(self, match_id: UUID, match: MatchModel) -> None:
        if self.repo.update_match(match_id, match) is None:
            raise RepositoryError(f"Match with {match_id=} not found.")

    def _replay(self, match: MatchModel) -> Game:
        """Rebuild the domain Game from the stored starting position and moves."""
        return Game.replay(match.starting_fen, match.moves_uci, self.draw_policy)

    def _record_game(self, match: MatchModel, game: Game) -> None:
        """Copy the outcome of the domain Game back onto the stored record."""
        match.current_fen = game.to_fen()
        match.moves_uci = [move.to_uci() for move in game.moves]
        match.status = GAME_STATE_TO_STATUS[game.state].value
        winner = game.winner
        match.winner = (
            match.registered_players[to_shared_color(winner).value]
            if winner is not None
            else None
        )

    def _assert_in_progress(self, match: MatchModel) -> None:
        if match.status in FINISHED_STATUSES:
            raise GameOverError(f"Match is over. status: {match.status}")
        if match.status != Status.IN_PROGRESS:
            raise GameStateError(f"Match is not in progress. status: {match.status}")

    def _get_player_color(self, match: MatchModel, player: str) -> Color:
        color = next(
            (
                color
                for color, name in match.registered_players.items()
                if name == player
            ),
            None,
        )
        if color is None:
            raise GameStateError(f"Player {player} does not play in this match.")
        return Color(color)

    def _assert_your_turn(self, match: MatchModel, game: Game, player: str) -> Color:
        """You must wait for your turn before calculating legal moves / making a move."""
        player_color = self._get_player_color(match, player)
        color_to_move = to_shared_color(game.color_to_move)
        if player_color != color_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {match.registered_players[color_to_move.value]} to make a move first."
            )
        return player_color
