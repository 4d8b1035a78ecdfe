"""Repository helpers for working with player aggregates."""

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from arcane_backend.database.schemas import PlayerSchema
from arcane_backend.game_logic.persistence import ConcurrentUpdateError
from arcane_backend.game_logic.state import PlayerAggregate

_DOCUMENT_EXCLUDE = {"player_id", "version"}


class PlayerAggregateRepository:
    """SQL implementation of the player aggregate store protocol."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def load(self, player_id: str) -> PlayerAggregate | None:
        """Return the aggregate stored for *player_id*."""
        stmt = (
            select(PlayerSchema)
            .where(PlayerSchema.id == player_id)
            .execution_options(populate_existing=True)
        )
        row = self._session.scalar(stmt)
        if row is None:
            return None
        return PlayerAggregate.model_validate(
            {**row.document, "player_id": row.id, "version": row.version}
        )

    def save(self, aggregate: PlayerAggregate) -> PlayerAggregate:
        """Insert or version-checked update of *aggregate*."""
        document = aggregate.model_dump(mode="json", exclude=_DOCUMENT_EXCLUDE)
        if aggregate.version == 0:
            if self._session.get(PlayerSchema, aggregate.player_id) is not None:
                raise ConcurrentUpdateError(aggregate.player_id, aggregate.version)
            self._session.add(
                PlayerSchema(id=aggregate.player_id, document=document, version=1)
            )
            self._session.flush()
            return aggregate.model_copy(update={"version": 1})

        stmt = (
            update(PlayerSchema)
            .where(
                PlayerSchema.id == aggregate.player_id,
                PlayerSchema.version == aggregate.version,
            )
            .values(
                document=document,
                version=aggregate.version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentUpdateError(aggregate.player_id, aggregate.version)
        return aggregate.model_copy(update={"version": aggregate.version + 1})

    def commit(self) -> None:
        """Commit the request transaction while the caller still holds the player."""
        self._session.commit()
