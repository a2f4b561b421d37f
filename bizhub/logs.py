import json, time, uuid, datetime as dt
from typing import Optional

from .db import get_conn, execute, fetch_all, fetch_scalar


def ensure_log_schema():
    from .schema import ensure_schema
    ensure_schema()


def _dump(obj) -> Optional[str]:
    if obj is None:
        return None
    return json.dumps(obj, ensure_ascii=False, default=str)


class LogContext:
    """Audit record for one mutating operation, written to operation_log."""

    def __init__(self, action: str, user: str = "system"):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None

    def set_user(self, claims: Optional[dict]):
        if claims:
            self.user = str(claims.get("username") or claims.get("email") or claims.get("id") or self.user)

    def set_entity(self, etype: str, eid):
        self.entity_type = etype
        self.entity_id = None if eid is None else str(eid)

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def write(self, result: str = "OK", err: Optional[str] = None):
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        rec = {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dump(self.before),
            "after_json": _dump(self.after),
            "payload_json": _dump(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": elapsed_ms,
        }
        with get_conn() as conn:
            execute(
                conn,
                """INSERT INTO operation_log
                (ts,user,action,entity_type,entity_id,request_id,before_json,after_json,payload_json,result,err_msg,latency_ms)
                VALUES(:ts,:user,:action,:entity_type,:entity_id,:request_id,:before_json,:after_json,:payload_json,:result,:err_msg,:latency_ms)""",
                rec,
            )
            conn.commit()


def search_logs(q: Optional[str], action: Optional[str], ts_from: Optional[str], ts_to: Optional[str], page: int, size: int):
    where = []
    params = {}
    if q:
        where.append("(payload_json LIKE :q OR before_json LIKE :q OR after_json LIKE :q OR entity_id = :qid)")
        params["q"] = f"%{q}%"
        params["qid"] = q
    if action:
        where.append("action = :action")
        params["action"] = action
    if ts_from:
        where.append("ts >= :ts_from")
        params["ts_from"] = ts_from
    if ts_to:
        where.append("ts <= :ts_to")
        params["ts_to"] = ts_to
    wh = " WHERE " + " AND ".join(where) if where else ""
    page = max(page, 1)
    with get_conn() as conn:
        total = fetch_scalar(conn, f"SELECT COUNT(1) FROM operation_log{wh}", params)
        rows = fetch_all(
            conn,
            f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT :limit OFFSET :offset",
            {**params, "limit": size, "offset": (page - 1) * size},
        )
    return total, rows
