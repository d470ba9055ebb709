from fastapi import APIRouter, Depends, UploadFile

from almoxtrack.api.auth import get_current_user
from almoxtrack.services import upload_service

router = APIRouter(prefix="/uploads", tags=["Uploads"], dependencies=[Depends(get_current_user)])


@router.post("", status_code=201)
def upload_image(file: UploadFile):
    url = upload_service.upload(file.file.read(), file.filename or "", file.content_type or "")
    return {"url": url}
