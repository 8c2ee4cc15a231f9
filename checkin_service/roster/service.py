from typing import List, Tuple
from uuid import UUID
from datetime import date
import pandas as pd
from io import BytesIO
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from checkin_service.event_sessions.exceptions import EventNotFoundException
from checkin_service.event_sessions.schemas import EventSessionResponse, EventSummary
from checkin_service.event_sessions.service import EventSessionService
from checkin_service.exceptions import NotFoundException
from checkin_service.programs.eligibility import calculate_age
from checkin_service.programs.repository import ProgramSessionRepository
from checkin_service.programs.schemas import ProgramSessionResponse
from checkin_service.roster.repository import RosterRepository
from checkin_service.roster.schemas import (
    ActiveCheckIn,
    EventRoster,
    EventRosterEntry,
    ProgramRoster,
    ProgramRosterEntry,
)
from checkin_service.utils.timezone import convert_to_local, local_today


def to_event_entry(checkin, profile) -> EventRosterEntry:
    """Convert a check-in row to a roster line, naming members from their profile"""
    if checkin.type == "member":
        name = profile.full_name if profile else "Unknown member"
        phone = profile.phone if profile else None
        email = profile.email if profile else None
    else:
        name = checkin.guest_name
        phone = checkin.guest_phone
        email = checkin.guest_email

    return EventRosterEntry(
        checkin_id=checkin.id,
        type=checkin.type,
        member_id=checkin.member_id,
        name=name,
        phone=phone,
        email=email,
        adults=checkin.adults,
        children_count=checkin.children_count,
        first_time=checkin.first_time,
        contact_ok=checkin.contact_ok,
        prayer_request=checkin.prayer_request,
        checked_in_at=checkin.created_at,
    )


def to_program_entry(checkin, child, parent, teen, service_date: date) -> ProgramRosterEntry:
    """Convert a program check-in row to a roster line"""
    if child is not None:
        kind, subject_id = "child", child.id
        name = child.full_name
        age = calculate_age(child.date_of_birth, service_date)
        allergies = child.allergies
    else:
        kind, subject_id = "teen", checkin.teen_user_id
        name = teen.full_name if teen else "Unknown teen"
        age = calculate_age(teen.birthday, service_date) if teen and teen.birthday else None
        allergies = None

    return ProgramRosterEntry(
        checkin_id=checkin.id,
        kind=kind,
        subject_id=subject_id,
        name=name,
        age=round(age, 1) if age is not None else None,
        has_allergies=bool(allergies and allergies.strip()),
        allergies=allergies,
        parent_name=parent.full_name if parent else None,
        parent_phone=parent.phone if parent else None,
        parent_email=parent.email if parent else None,
        emergency_contact_name=checkin.emergency_contact_name,
        emergency_contact_phone=checkin.emergency_contact_phone,
        notes=checkin.notes,
        pickup_code=checkin.pickup_code,
        status="picked_up" if checkin.picked_up_at else "checked_in",
        checked_in_at=checkin.checked_in_at,
        picked_up_at=checkin.picked_up_at,
        picked_up_by=checkin.picked_up_by,
    )


class RosterService:
    """Read-only attendance views for the lobby screen and staff"""

    def __init__(
        self,
        repository: RosterRepository,
        program_sessions: ProgramSessionRepository,
        event_sessions: EventSessionService,
    ):
        self.repository = repository
        self.program_sessions = program_sessions
        self.event_sessions = event_sessions

    async def active_checkin(self) -> ActiveCheckIn | None:
        """The live event and its session, or None when nothing is live"""
        active = await self.event_sessions.get_active_with_event()
        if not active:
            return None
        session, event = active
        return ActiveCheckIn(
            event=EventSummary.model_validate(event),
            session=EventSessionResponse.model_validate(session),
        )

    async def event_roster(self, event_id: UUID, type_filter: str | None = None) -> EventRoster:
        """
        Attendance for the event's active or most recent session.

        An event that never had a session returns an empty roster.
        """
        event = await self.repository.get_event(event_id)
        if not event:
            raise EventNotFoundException(event_id)

        session = await self.repository.get_latest_for_event(event_id)
        entries: List[EventRosterEntry] = []
        if session:
            rows = await self.repository.get_event_checkins(session.id, type_filter)
            entries = [to_event_entry(checkin, profile) for checkin, profile in rows]

        return EventRoster(
            event=EventSummary.model_validate(event),
            session=EventSessionResponse.model_validate(session) if session else None,
            total=len(entries),
            entries=entries,
        )

    async def event_roster_export(self, event_id: UUID, format: str) -> Tuple[BytesIO, str, str]:
        """Roster file as (buffer, media type, filename)"""
        roster = await self.event_roster(event_id)
        if roster.session is None:
            raise NotFoundException("No check-in session found for this event")

        day = convert_to_local(roster.session.started_at).date()
        if format == "pdf":
            title = f"Check-In Roster - {roster.event.title} ({day})"
            return self.generate_pdf(roster.entries, title), "application/pdf", f"roster_{day}.pdf"
        return self.generate_csv(roster.entries), "text/csv", f"roster_{day}.csv"

    def generate_csv(self, entries: List[EventRosterEntry]) -> BytesIO:
        """Generate CSV file from roster entries"""
        data = []
        for entry in entries:
            data.append({
                'Name': entry.name,
                'Type': entry.type,
                'Phone': entry.phone or '',
                'Email': entry.email or '',
                'Adults': entry.adults,
                'Children': entry.children_count,
                'First Time': 'Yes' if entry.first_time else 'No',
                'Contact OK': 'Yes' if entry.contact_ok else 'No',
                'Prayer Request': entry.prayer_request or '',
                'Checked In At': convert_to_local(entry.checked_in_at).isoformat(),
            })
        df = pd.DataFrame(data, columns=[
            'Name', 'Type', 'Phone', 'Email', 'Adults', 'Children',
            'First Time', 'Contact OK', 'Prayer Request', 'Checked In At',
        ])
        buffer = BytesIO()
        df.to_csv(buffer, index=False)
        buffer.seek(0)
        return buffer

    def generate_pdf(self, entries: List[EventRosterEntry], title: str) -> BytesIO:
        """Generate PDF file from roster entries"""
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=letter)
        width, height = letter
        line_x1 = 50
        line_x2 = width - 50

        c.setFont("Helvetica-Bold", 16)
        c.drawString(50, height - 50, title)
        c.setFont("Helvetica", 10)
        c.drawString(50, height - 68, f"Total check-ins: {len(entries)}")

        y = height - 95
        for entry in entries:
            if y < 100:
                c.showPage()
                y = height - 50
                c.setFont("Helvetica", 10)

            c.drawString(50, y, f"{entry.name} ({entry.type})")
            c.drawString(50, y - 15, f"Phone: {entry.phone or ''}   Email: {entry.email or ''}")
            c.drawString(50, y - 30, f"Adults: {entry.adults}   Children: {entry.children_count}   First time: {'Yes' if entry.first_time else 'No'}")
            c.drawString(50, y - 45, f"Checked in: {convert_to_local(entry.checked_in_at).strftime('%H:%M')}")
            c.setLineWidth(0.5)
            c.line(line_x1, y - 55, line_x2, y - 55)
            y -= 70

        c.save()
        buffer.seek(0)
        return buffer

    async def program_roster(
        self,
        program: str,
        service_date: date | None = None,
        status_filter: str = "all",
    ) -> ProgramRoster:
        """Children or teens in a program's session for one day"""
        service_date = service_date or local_today()
        session = await self.program_sessions.get_for_date(program, service_date)

        entries: List[ProgramRosterEntry] = []
        if session:
            rows = await self.repository.get_program_checkins(session.id, status_filter)
            entries = [
                to_program_entry(checkin, child, parent, teen, service_date)
                for checkin, child, parent, teen in rows
            ]

        return ProgramRoster(
            program=program,
            service_date=service_date,
            session=ProgramSessionResponse.model_validate(session) if session else None,
            total=len(entries),
            entries=entries,
        )
