from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .alerts.emitter import AlertEmitter
from .alerts.mysql_alert_emitter import MySQLAlertEmitter
from .approvals.service import ApprovalService
from .attendance.engine import TimeRecordEngine
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_time_record_repository import MySQLTimeRecordRepository
from .core.policy import RulePolicy
from .database.bootstrap import as_db_config
from .database.connection import DatabaseConnection
from .employees.mysql_approval_authority import MySQLApprovalAuthority
from .reports.service import AttendanceReportService
from .requests.leave_workflow import LeaveRequestWorkflow
from .requests.mysql_leave_repository import MySQLLeaveRequestRepository
from .requests.mysql_time_modification_repository import MySQLTimeModificationRequestRepository
from .requests.time_modification_workflow import TimeModificationWorkflow


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    policy: RulePolicy

    time_records_repo: MySQLTimeRecordRepository
    leave_requests_repo: MySQLLeaveRequestRepository
    time_modifications_repo: MySQLTimeModificationRequestRepository
    authority: MySQLApprovalAuthority
    alerts: AlertEmitter

    engine: TimeRecordEngine
    leave_workflow: LeaveRequestWorkflow
    time_modification_workflow: TimeModificationWorkflow
    approval_service: ApprovalService
    report_service: AttendanceReportService


def build_container(
    *,
    db_config: dict,
    policy: Optional[RulePolicy] = None,
    alerts: Optional[AlertEmitter] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(as_db_config(db_config))
    policy = policy or RulePolicy()

    time_records_repo = MySQLTimeRecordRepository(conn)
    leave_requests_repo = MySQLLeaveRequestRepository(conn)
    time_modifications_repo = MySQLTimeModificationRequestRepository(conn)
    authority = MySQLApprovalAuthority(conn)
    alerts = alerts or MySQLAlertEmitter(conn)

    engine = TimeRecordEngine(
        time_records_repo,
        leave_requests_repo,
        alerts,
        policy=policy,
        strategy_factory=AttendanceStrategyFactory(policy=policy),
    )
    leave_workflow = LeaveRequestWorkflow(leave_requests_repo, authority, policy=policy)
    time_modification_workflow = TimeModificationWorkflow(
        time_modifications_repo,
        leave_requests_repo,
        authority,
        engine,
        conn,
        policy=policy,
    )
    approval_service = ApprovalService([leave_workflow, time_modification_workflow])
    report_service = AttendanceReportService(time_records_repo)

    return Container(
        conn=conn,
        policy=policy,
        time_records_repo=time_records_repo,
        leave_requests_repo=leave_requests_repo,
        time_modifications_repo=time_modifications_repo,
        authority=authority,
        alerts=alerts,
        engine=engine,
        leave_workflow=leave_workflow,
        time_modification_workflow=time_modification_workflow,
        approval_service=approval_service,
        report_service=report_service,
    )
