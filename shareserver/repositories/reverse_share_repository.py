"""Reverse share repository for database operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.logging_config import get_logger
from shareserver.database import get_db_connection

logger = get_logger(__name__)


@dataclass
class ReverseShare:
    reverse_share_id: str
    max_share_size: int
    share_expiration: Optional[datetime]


class ReverseShareRepository:
    @staticmethod
    def create_reverse_share(
        reverse_share_id: str,
        max_share_size: int,
        share_expiration: Optional[datetime] = None,
    ) -> ReverseShare:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO reverse_shares (reverse_share_id, max_share_size, share_expiration, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    reverse_share_id,
                    str(max_share_size),
                    share_expiration.isoformat() if share_expiration else None,
                    datetime.utcnow().isoformat(),
                )
            )
            conn.commit()

        logger.info(f"Reverse share created: {reverse_share_id} [max_share_size={max_share_size}]")
        return ReverseShare(
            reverse_share_id=reverse_share_id,
            max_share_size=max_share_size,
            share_expiration=share_expiration,
        )

    @staticmethod
    def get_by_id(reverse_share_id: str, conn=None) -> Optional[ReverseShare]:
        if conn is None:
            with get_db_connection() as conn:
                return ReverseShareRepository.get_by_id(reverse_share_id, conn=conn)

        cursor = conn.cursor()
        cursor.execute(
            "SELECT reverse_share_id, max_share_size, share_expiration FROM reverse_shares WHERE reverse_share_id = ?",
            (reverse_share_id,)
        )
        row = cursor.fetchone()
        if row is None:
            return None

        return ReverseShare(
            reverse_share_id=row["reverse_share_id"],
            max_share_size=int(row["max_share_size"]),
            share_expiration=(
                datetime.fromisoformat(row["share_expiration"]) if row["share_expiration"] else None
            ),
        )
