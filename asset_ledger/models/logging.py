from datetime import datetime
from asset_ledger import db
from asset_ledger.models.base import BaseModel


class ActivityLog(BaseModel):
    """Activity log for tracking every write on the movement ledger"""
    __tablename__ = 'activity_logs'

    actor = db.Column(db.String(100))
    action = db.Column(db.String(50), nullable=False)  # CREATE, UPDATE, CASCADE, DELETE, REPAIR
    table_name = db.Column(db.String(50), nullable=False)
    record_code = db.Column(db.String(20), index=True)
    asset_id = db.Column(db.Integer, index=True)
    old_data = db.Column(db.JSON)  # JSONB in PostgreSQL
    new_data = db.Column(db.JSON)  # JSONB in PostgreSQL
    ip_address = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @classmethod
    def log_activity(cls, action, table_name, record_code=None, asset_id=None,
                     old_data=None, new_data=None, actor=None, ip_address=None):
        """
        Add a log entry to the current session.

        Not committed here: the entry belongs to the ledger transaction that
        performs the change, so it disappears with it on rollback.
        """
        log = cls(
            actor=actor or 'System',
            action=action,
            table_name=table_name,
            record_code=record_code,
            asset_id=asset_id,
            old_data=old_data,
            new_data=new_data,
            ip_address=ip_address
        )
        db.session.add(log)
        return log

    def __repr__(self):
        return f'<ActivityLog {self.action} on {self.table_name} {self.record_code}>'
