from sparkybot.audit.log import AuditEntry, AuditLog, MemoryAuditLog, SQLiteAuditLog

__all__ = ["AuditEntry", "AuditLog", "MemoryAuditLog", "SQLiteAuditLog"]
