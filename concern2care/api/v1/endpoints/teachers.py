# concern2care/api/v1/endpoints/teachers.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from concern2care.db.session import get_db
from concern2care.schemas.enrolled_teacher import (
    EnrolledTeacherCreate,
    EnrolledTeacherPublic,
    EnrolledTeacherUpdate,
    UsageStatus,
)
from concern2care.services import usage_service

router = APIRouter(prefix="/admin/teachers", tags=["enrolled-teachers"])


@router.post("/", response_model=EnrolledTeacherPublic, status_code=status.HTTP_201_CREATED)
def enroll_teacher(obj_in: EnrolledTeacherCreate, db: Session = Depends(get_db)):
    return usage_service.enroll_teacher(db, obj_in=obj_in)


@router.get("/", response_model=List[EnrolledTeacherPublic])
def list_teachers(
    db: Session = Depends(get_db),
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
):
    return usage_service.list_teachers(db, active_only=active_only, skip=skip, limit=limit)


@router.get("/{teacher_id}", response_model=EnrolledTeacherPublic)
def get_teacher(teacher_id: int, db: Session = Depends(get_db)):
    return usage_service.require_teacher(db, teacher_id)


@router.patch("/{teacher_id}", response_model=EnrolledTeacherPublic)
def update_teacher(
    teacher_id: int,
    obj_in: EnrolledTeacherUpdate,
    db: Session = Depends(get_db),
):
    teacher = usage_service.require_teacher(db, teacher_id)
    return usage_service.update_teacher(db, db_obj=teacher, obj_in=obj_in)


@router.post("/{teacher_id}/deactivate", response_model=EnrolledTeacherPublic)
def deactivate_teacher(teacher_id: int, db: Session = Depends(get_db)):
    return usage_service.deactivate_teacher(db, teacher_id)


@router.get("/{teacher_id}/usage", response_model=UsageStatus)
def get_usage(teacher_id: int, db: Session = Depends(get_db)):
    return usage_service.check_usage_limit(db, teacher_id)


@router.post("/{teacher_id}/usage/reset", response_model=EnrolledTeacherPublic)
def reset_usage(teacher_id: int, db: Session = Depends(get_db)):
    return usage_service.reset_usage(db, teacher_id)
