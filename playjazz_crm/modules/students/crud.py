# playjazz_crm/modules/students/crud.py
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from .models import Student


async def get_student_or_404(db: AsyncSession, student_id: int) -> Student:
    stmt = (
        select(Student)
        .options(selectinload(Student.timeline))
        .where(Student.id == student_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(stmt)
    student = res.scalar_one_or_none()
    if not student:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Aluno {student_id} não encontrado."
        )
    return student
