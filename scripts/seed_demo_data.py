"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import close_engine, session_scope
from app.core.enums import CourseStatusEnum, RoleEnum
from app.core.security import hash_password, verify_password
from app.modules.audit.repository import AuditRepository
from app.modules.classes.repository import ClassSessionsRepository
from app.modules.classes.schemas import ClassSessionAssign
from app.modules.classes.service import ClassSessionService
from app.modules.courses.models import Course
from app.modules.courses.repository import CoursesRepository
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.uploads.repository import UploadTasksRepository

DEMO_PASSWORD = "DemoPass123!"

DEMO_USERS = (
    ("100001", "Demo Admin", RoleEnum.ADMIN),
    ("200001", "Demo Teacher", RoleEnum.TEACHER),
    ("300001", "Demo Editor", RoleEnum.EDITOR),
)

DEMO_COURSE_NAME = "Demo Physics Batch"
DEMO_COURSE_CLASSES = 24
DEMO_CLASS_NAMES = ("Class 01", "Class 02", "Class 03")


@dataclass(slots=True)
class SeedStats:
    users_created: int = 0
    users_updated: int = 0
    course_created: bool = False
    classes_created: int = 0


async def _ensure_user(
    session: AsyncSession,
    *,
    tpin: str,
    name: str,
    role: RoleEnum,
) -> tuple[User, bool]:
    user = await session.scalar(select(User).where(User.tpin == tpin))
    created = False
    if user is None:
        user = User(
            tpin=tpin,
            name=name,
            role=role,
            password_hash=hash_password(DEMO_PASSWORD),
            is_active=True,
        )
        session.add(user)
        created = True
    else:
        if not verify_password(DEMO_PASSWORD, user.password_hash):
            user.password_hash = hash_password(DEMO_PASSWORD)
        user.name = name
        user.role = role
        user.is_active = True

    await session.flush()
    return user, created


async def _ensure_course(session: AsyncSession) -> tuple[Course, bool]:
    course = await session.scalar(select(Course).where(Course.name == DEMO_COURSE_NAME))
    if course is not None:
        return course, False
    course = Course(
        name=DEMO_COURSE_NAME,
        number_of_classes=DEMO_COURSE_CLASSES,
        status=CourseStatusEnum.ACTIVE,
    )
    session.add(course)
    await session.flush()
    return course, True


async def _ensure_demo_classes(
    session: AsyncSession,
    *,
    admin_user: User,
    teacher_user: User,
    course: Course,
) -> int:
    sessions_repository = ClassSessionsRepository(session)
    service = ClassSessionService(
        repository=sessions_repository,
        courses_repository=CoursesRepository(session),
        identity_repository=IdentityRepository(session),
        uploads_repository=UploadTasksRepository(session),
        audit_repository=AuditRepository(session),
    )
    created = 0
    for class_name in DEMO_CLASS_NAMES:
        if await sessions_repository.exists_by_course_and_name(course.id, class_name):
            continue
        await service.assign_session(
            ClassSessionAssign(course_id=course.id, teacher_id=teacher_user.id, name=class_name),
            admin_user,
        )
        created += 1
    return created


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with session_scope() as session:
        users: dict[RoleEnum, User] = {}
        for tpin, name, role in DEMO_USERS:
            user, created = await _ensure_user(session, tpin=tpin, name=name, role=role)
            users[role] = user
            if created:
                stats.users_created += 1
            else:
                stats.users_updated += 1

        course, stats.course_created = await _ensure_course(session)
        stats.classes_created = await _ensure_demo_classes(
            session,
            admin_user=users[RoleEnum.ADMIN],
            teacher_user=users[RoleEnum.TEACHER],
            course=course,
        )

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for ClassLedger (admin, teacher and editor "
            "accounts, one course, a few pending classes)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Users created: {stats.users_created}")
    print(f"- Users updated: {stats.users_updated}")
    print(f"- Course created: {stats.course_created}")
    print(f"- Pending classes created: {stats.classes_created}")
    print("")
    print("Demo credentials (non-production only):")
    for tpin, _, role in DEMO_USERS:
        print(f"- {role.value:<8} TPIN {tpin} / {DEMO_PASSWORD}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
