"""PortalStore report and report-schedule methods."""
from __future__ import annotations

import json
from datetime import date
from typing import List, Optional

from core.models import Report, ReportFrequency, ScheduledReport
from core.repositories.base import new_id, utcnow


class ReportsMixin:

    async def create_report(
        self,
        tenant_id: str,
        name: str,
        report_type: str,
        start_date: date,
        end_date: date,
        sub_account_ids: Optional[List[str]] = None,
        format: str = "csv",
    ) -> Report:
        report = Report(
            id=new_id("rpt"),
            tenant_id=tenant_id,
            name=name,
            report_type=report_type,
            start_date=start_date,
            end_date=end_date,
            sub_account_ids=list(sub_account_ids or []),
            format=format,
            created_at=utcnow().isoformat(),
        )
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO reports (id, tenant_id, name, report_type, start_date, end_date,
                                     sub_account_ids, format, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                report.id, tenant_id, name, report_type,
                start_date.isoformat(), end_date.isoformat(),
                json.dumps(report.sub_account_ids), format, report.status, report.created_at,
            ))
        return report

    async def list_reports(self, tenant_id: str) -> List[Report]:
        rows = await self.fetchall(
            "SELECT * FROM reports WHERE tenant_id = ? ORDER BY created_at DESC, id",
            (tenant_id,),
        )
        return [Report.from_row(row) for row in rows]

    async def get_report(self, tenant_id: str, report_id: str) -> Optional[Report]:
        row = await self.fetchone(
            "SELECT * FROM reports WHERE id = ? AND tenant_id = ?", (report_id, tenant_id)
        )
        return Report.from_row(row) if row else None

    async def create_schedule(
        self,
        tenant_id: str,
        report_type: str,
        frequency: ReportFrequency,
        day_of_month: Optional[int] = None,
        recipients: Optional[List[str]] = None,
        format: str = "csv",
    ) -> ScheduledReport:
        schedule = ScheduledReport(
            id=new_id("sched"),
            tenant_id=tenant_id,
            report_type=report_type,
            frequency=ReportFrequency(frequency),
            day_of_month=day_of_month,
            recipients=list(recipients or []),
            format=format,
            created_at=utcnow().isoformat(),
        )
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO scheduled_reports (id, tenant_id, report_type, frequency,
                                               day_of_month, recipients, format, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                schedule.id, tenant_id, report_type, schedule.frequency.value,
                day_of_month, json.dumps(schedule.recipients), format, schedule.created_at,
            ))
        return schedule

    async def list_schedules(self, tenant_id: str) -> List[ScheduledReport]:
        rows = await self.fetchall(
            "SELECT * FROM scheduled_reports WHERE tenant_id = ? ORDER BY created_at DESC, id",
            (tenant_id,),
        )
        return [ScheduledReport.from_row(row) for row in rows]
