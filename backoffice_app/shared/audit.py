# caminho: backoffice_app/shared/audit.py
# Funções:
# - AuditLogger: grava entradas no log de auditoria dos administradores (best-effort)

from __future__ import annotations

from backoffice_app.domain.admins.entities import Admin, AdminLogEntry
from backoffice_app.domain.admins.repositories import AdminLogRepository
from backoffice_app.infrastructure.db.utils import utcnow
from backoffice_app.shared.logging import log_error


class AuditLogger:
    def __init__(self, logs: AdminLogRepository) -> None:
        self._logs = logs

    async def record(self, admin: Admin, client_ip: str, remark: str) -> bool:
        """Acrescenta o registro; falhas são logadas e nunca interrompem o fluxo principal.

        Cancelamento (asyncio.CancelledError) não é capturado e propaga normalmente.
        """
        entry = AdminLogEntry(
            site_id=admin.site_id,
            admin_id=admin.id,
            admin_username=admin.username,
            ip=client_ip or '',
            remark=remark,
            created_at=utcnow(),
        )
        try:
            await self._logs.add(entry)
        except Exception as exc:
            log_error('ADMIN_AUDIT_LOG_FAILED', {'admin_id': admin.id, 'remark': remark, 'error': str(exc)})
            return False
        return True
