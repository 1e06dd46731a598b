import sys

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.models.academic import Grade, Homeroom, Section
from app.services.schedule_queries import homeroom_grade_ids, homeroom_schedule

if len(sys.argv) != 3:
    print("Usage: PYTHONPATH=backend python check_homeroom_data.py <homeroom_id> <semester_id>")
    sys.exit(1)

homeroom_id, semester_id = sys.argv[1], sys.argv[2]

db = SessionLocal()
try:
    homeroom = db.get(Homeroom, homeroom_id)
    if homeroom is None:
        print("Homeroom not found!")
        sys.exit(1)

    section = db.get(Section, homeroom.section_id)
    grade_ids = homeroom_grade_ids(db, homeroom.id)
    grades = [db.get(Grade, grade_id) for grade_id in grade_ids]
    print(f"Homeroom: {homeroom.name}")
    print(f"Grades: {', '.join(f'{g.name} (id: {g.id})' for g in grades) or 'None'}")
    print(f"Section: {section.name if section else '?'} (id: {homeroom.section_id})")

    schedule = homeroom_schedule(
        db, homeroom.id, semester_id, legacy_fallback=get_settings().legacy_homeroom_fallback
    )
    print(f"\nFound {len(schedule.sessions)} sessions for this homeroom:")
    for item in schedule.sessions:
        legacy = " (legacy)" if item.homeroom_id is None else ""
        print(f"- [{item.class_name}] ({item.class_code}) Block: {item.block_name} Day: {item.day_of_week}{legacy}")
finally:
    db.close()
