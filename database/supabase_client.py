"""
Supabase database client
"""
from typing import List, Optional, Dict, Any
from supabase import create_client, Client

from app.config import supabase_config


# singleton client shared by every service
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the Supabase client instance (singleton)
    """
    global _supabase_client
    if _supabase_client is None:
        if not supabase_config.supabase_url or not supabase_config.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
        _supabase_client = create_client(
            supabase_config.supabase_url,
            supabase_config.supabase_key
        )
    return _supabase_client


class ClubTable:
    """
    Table access scoped to one club.

    Every read filters on ``club_id`` and every insert stamps it, so a club
    can never see or touch another club's rows.
    """

    def __init__(self, table: str, club_id: str, client: Optional[Client] = None):
        self.table = table
        self.club_id = club_id
        self.client = client or get_supabase_client()

    def _query(self, columns: str = "*"):
        return self.client.table(self.table).select(columns).eq("club_id", self.club_id)

    def list(
        self,
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        **filters
    ) -> List[Dict[str, Any]]:
        """List rows, optionally filtered by equality"""
        query = self._query()
        for column, value in filters.items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit:
            query = query.limit(limit)
        result = query.execute()
        return result.data or []

    def count(self, **filters) -> int:
        query = self.client.table(self.table).select("id", count="exact").eq("club_id", self.club_id)
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        result = self._query().eq("id", record_id).limit(1).execute()
        if result.data:
            return result.data[0]
        return None

    def find_one(self, **filters) -> Optional[Dict[str, Any]]:
        rows = self.list(limit=1, **filters)
        return rows[0] if rows else None

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**data, "club_id": self.club_id}
        result = self.client.table(self.table).insert(payload).execute()
        if not result.data:
            raise RuntimeError(f"{self.table} insert returned no data")
        return result.data[0]

    def insert_many(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Bulk insert in a single request"""
        if not rows:
            return []
        payload = [{**row, "club_id": self.club_id} for row in rows]
        result = self.client.table(self.table).insert(payload).execute()
        return result.data or []

    def update(self, record_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.client.table(self.table).update(data).eq(
            "club_id", self.club_id
        ).eq("id", record_id).execute()
        if result.data:
            return result.data[0]
        return None

    def update_where(self, data: Dict[str, Any], **filters) -> List[Dict[str, Any]]:
        """Update every row matching the filters, returns the updated rows"""
        query = self.client.table(self.table).update(data).eq("club_id", self.club_id)
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        return result.data or []

    def delete(self, record_id: str) -> bool:
        result = self.client.table(self.table).delete().eq(
            "club_id", self.club_id
        ).eq("id", record_id).execute()
        return bool(result.data)

    def delete_where(self, **filters) -> int:
        query = self.client.table(self.table).delete().eq("club_id", self.club_id)
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        return len(result.data or [])

