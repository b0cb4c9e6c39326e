"""In-memory stand-in for the parts of the Supabase client the API uses.

Supports the PostgREST builder chain used by the routers and services:
select / insert / upsert / update / delete, eq / neq / is_ / in_ / gte /
lte / not_, order, range, limit, execute. Unique columns behave like a
Postgres unique constraint where NULL never conflicts.
"""

from types import SimpleNamespace
from typing import Any, Optional

from postgrest.exceptions import APIError


def _is_null(value: Any) -> bool:
    return value is None


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload: Any = None
        self.on_conflict = ""
        self.ignore_duplicates = False
        self.filters: list = []
        self._negate = False
        self.order_by: list = []
        self.window: Optional[tuple[int, int]] = None
        self.max_rows: Optional[int] = None

    # actions
    def select(self, columns: str = "*", count=None):
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, rows):
        self.action = "insert"
        self.payload = rows
        return self

    def upsert(self, rows, on_conflict: str = "", ignore_duplicates: bool = False, **_):
        self.action = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, values):
        self.action = "update"
        self.payload = values
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters
    @property
    def not_(self):
        self._negate = True
        return self

    def _add(self, predicate):
        negate, self._negate = self._negate, False
        self.filters.append((lambda row: not predicate(row)) if negate else predicate)
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._add(lambda row: row.get(column) != value)

    def is_(self, column, value):
        if value in (None, "null"):
            return self._add(lambda row: _is_null(row.get(column)))
        return self._add(lambda row: row.get(column) is value)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row: row.get(column) in values)

    def gte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) <= value)

    # modifiers
    def order(self, column, desc: bool = False):
        self.order_by.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.window = (start, end)
        self.db.range_calls.append((self.table, start, end))
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def execute(self):
        return self.db._execute(self)


class FakeSupabase:
    def __init__(
        self,
        tables: Optional[dict[str, list[dict]]] = None,
        unique: Optional[dict[str, str]] = None,
        user: Optional[SimpleNamespace] = None,
    ):
        self.tables: dict[str, list[dict]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.unique = unique if unique is not None else {
            "bank_transactions": "transaction_reference"
        }
        self.user = user
        self.fail_reads: dict[str, str] = {}
        self.fail_writes: dict[str, str] = {}
        self.range_calls: list[tuple[str, int, int]] = []
        self.max_rows = 1000
        self._next_id = 1000
        for rows in self.tables.values():
            for row in rows:
                if "id" not in row:
                    row["id"] = self._new_id()
        self.auth = SimpleNamespace(
            get_user=lambda: SimpleNamespace(user=self.user) if self.user else None,
            set_session=lambda *_: None,
        )

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def table(self, name: str) -> FakeQuery:
        self.tables.setdefault(name, [])
        return FakeQuery(self, name)

    def rows(self, name: str) -> list[dict]:
        return self.tables.get(name, [])

    # execution
    def _matching(self, query: FakeQuery) -> list[dict]:
        rows = [row for row in self.rows(query.table) if all(f(row) for f in query.filters)]
        for column, desc in reversed(query.order_by):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        return rows

    def _project(self, rows: list[dict], columns: str) -> list[dict]:
        if columns.strip() == "*":
            return [dict(row) for row in rows]
        wanted = [c.strip() for c in columns.split(",") if c.strip()]
        return [{c: row.get(c) for c in wanted} for row in rows]

    def _check_write(self, table: str):
        if table in self.fail_writes:
            raise APIError({"message": self.fail_writes[table], "code": "XX000"})

    def _conflicts(self, table: str, row: dict, pending: list[dict]) -> bool:
        column = self.unique.get(table)
        if not column or row.get(column) is None:
            return False
        value = row[column]
        return any(existing.get(column) == value for existing in self.rows(table) + pending)

    def _execute(self, query: FakeQuery):
        table = query.table

        if query.action == "select":
            if table in self.fail_reads:
                raise APIError({"message": self.fail_reads[table], "code": "XX000"})
            rows = self._matching(query)
            if query.window is not None:
                start, end = query.window
                rows = rows[start : end + 1]
            rows = rows[: self.max_rows]
            if query.max_rows is not None:
                rows = rows[: query.max_rows]
            data = self._project(rows, query.columns)
            return SimpleNamespace(data=data, count=len(data))

        self._check_write(table)

        if query.action in ("insert", "upsert"):
            payload = query.payload if isinstance(query.payload, list) else [query.payload]
            accepted: list[dict] = []
            for row in payload:
                if self._conflicts(table, row, accepted):
                    if query.action == "upsert" and query.ignore_duplicates:
                        continue
                    raise APIError(
                        {
                            "message": f'duplicate key value violates unique constraint "{table}_reference_key"',
                            "code": "23505",
                        }
                    )
                stored = dict(row)
                stored.setdefault("id", self._new_id())
                accepted.append(stored)
            self.tables[table].extend(accepted)
            return SimpleNamespace(data=[dict(r) for r in accepted], count=len(accepted))

        if query.action == "update":
            updated = []
            for row in self._matching(query):
                row.update(query.payload)
                updated.append(dict(row))
            return SimpleNamespace(data=updated, count=len(updated))

        if query.action == "delete":
            doomed = self._matching(query)
            self.tables[table] = [r for r in self.rows(table) if r not in doomed]
            return SimpleNamespace(data=[dict(r) for r in doomed], count=len(doomed))

        raise AssertionError(f"unsupported action {query.action}")


def make_user(user_id: str = "admin-user", email: str = "ops@example.org") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, email=email)


def admin_db(**tables) -> FakeSupabase:
    """A fake whose caller is an operator with an admin profile."""
    user = make_user()
    profiles = list(tables.pop("profiles", []))
    profiles.append({"id": user.id, "role": "admin"})
    return FakeSupabase(tables={"profiles": profiles, **tables}, user=user)
