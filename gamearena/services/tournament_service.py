import logging
from typing import Any, Dict, List, Optional, Tuple

from gamearena.core.config import Settings, settings as default_settings
from gamearena.core.errors import InvalidStateError, NotFoundError
from gamearena.models.participant_model import TournamentParticipant
from gamearena.models.tournament_model import TERMINAL_STATUSES, GameType, Tournament, TournamentStatus
from gamearena.schemas import tournament_schemas
from gamearena.services.ledger_store import LedgerStore
from gamearena.services.user_service import UserService

logger = logging.getLogger(__name__)

ROOM_FIELDS = {"room_id": None, "room_password": None}

class TournamentService:
    def __init__(self, store: LedgerStore, settings: Settings = default_settings):
        self.store = store
        self.settings = settings
        self.users = UserService(store)

    def create_tournament(self, tournament: tournament_schemas.TournamentCreate) -> Tournament:
        admin = self.users.require_admin(tournament.created_by)
        return self.store.create_tournament(tournament, created_by=admin.id)

    def list_tournaments(self, game: Optional[GameType] = None, featured: bool = False) -> List[Tournament]:
        """Newest first; room credentials are never part of a listing."""
        tournaments = self.store.list_tournaments(game=game, featured=featured, featured_limit=self.settings.FEATURED_LIMIT)
        return [t.model_copy(update=ROOM_FIELDS) for t in tournaments]

    def get_tournament_detail(self, tournament_id: str, viewer_id: Optional[str] = None) -> Tuple[Tournament, List[TournamentParticipant]]:
        tournament = self.store.get_tournament(tournament_id)
        participants = self.store.list_participants(tournament_id)
        if not self._can_see_room(tournament_id, viewer_id):
            tournament = tournament.model_copy(update=ROOM_FIELDS)
        return tournament, participants

    def _can_see_room(self, tournament_id: str, viewer_id: Optional[str]) -> bool:
        if not viewer_id:
            return False
        if self.store.find_participant(tournament_id, viewer_id):
            return True
        try:
            return self.store.get_user(viewer_id).is_admin
        except NotFoundError:
            return False

    def update_tournament(self, tournament_id: str, tournament_update: tournament_schemas.TournamentUpdate, admin_id: Optional[str]) -> Tournament:
        self.users.require_admin(admin_id)
        current = self.store.get_tournament(tournament_id)
        if current.status in TERMINAL_STATUSES:
            raise InvalidStateError(f"Tournament is {current.status} and can no longer be edited")

        update_data: Dict[str, Any] = tournament_update.model_dump(exclude_unset=True)
        if update_data.get("status") == TournamentStatus.FINISHED:
            raise InvalidStateError("Tournaments are finished by recording their results")
        updated = self.store.update_tournament(tournament_id, update_data)
        logger.info("Tournament %s updated by %s: %s", tournament_id, admin_id, sorted(update_data))
        return updated

    def delete_tournament(self, tournament_id: str, admin_id: Optional[str]) -> bool:
        self.users.require_admin(admin_id)
        return self.store.delete_tournament(tournament_id)

    def get_user_tournaments(self, user_id: str) -> List[Tuple[TournamentParticipant, Tournament]]:
        self.store.get_user(user_id)
        joined = []
        for participation in self.store.list_user_participations(user_id):
            try:
                tournament = self.store.get_tournament(participation.tournament_id)
            except NotFoundError:
                continue
            joined.append((participation, tournament))
        return joined

    def admin_stats(self, admin_id: Optional[str]) -> Dict[str, Any]:
        self.users.require_admin(admin_id)
        return self.store.admin_stats()
