from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any
from urllib.parse import quote

from fastapi import Body, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .calculation.recalculation import CostCalculator
from .dictionaries import MAX_UPLOAD_FILES
from .estimate_service import EstimateService
from .exceptions import EstimateNotFoundError, FileParseError, LineItemNotFoundError
from .exporters.excel import export_filename, generate_excel
from .exporters.pdf import generate_pdf
from .ingestors.upload import parse_upload
from .logging_config import set_trace_id
from .merger import ParseMode, combine_parsed_files, required_file_count
from .models.estimate import Estimate, ProjectInfo
from .models.line_item import LineItem
from .validation import (
    UploadedFileInfo,
    normalize_project_info,
    validate_cost_calculation,
    validate_files,
    validate_line_items,
    validate_project_info,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "見積書が見つかりません"
SERVER_ERROR_MESSAGE = "サーバーエラーが発生しました"
INVALID_REQUEST_MESSAGE = "リクエストの形式が不正です"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class CalculateRequest(BaseModel):
    table_data: list[dict[str, Any]] | None = None
    cost_calculation: dict[str, Any] = Field(default_factory=dict)

    class Config:
        populate_by_name = True
        alias_generator = to_camel


class ApiError(HTTPException):
    def __init__(self, status_code: int, message: str, *, errors: list[str] | dict[str, str] | None = None) -> None:
        super().__init__(status_code=status_code, detail={"message": message, "errors": errors})


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _ok(data: Any = None, message: str | None = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = _dump(data)
    if message:
        body["message"] = message
    body.update(extra)
    return body


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}",
            "Content-Length": str(len(content)),
        },
    )


def _require_estimate_number(estimate: Estimate) -> None:
    if not estimate.project_info.estimate_number:
        raise ApiError(400, "見積番号は必須です")


def _parse_rows(raw_rows: list[dict[str, Any]]) -> list[LineItem]:
    validation = validate_line_items(raw_rows)
    if not validation.is_valid:
        raise ApiError(400, "バリデーションエラー", errors=validation.errors)
    return [LineItem.model_validate(row) for row in raw_rows]


def _parse_project_info(payload: Any) -> ProjectInfo:
    if not isinstance(payload, dict):
        raise ApiError(400, "基本情報はオブジェクトである必要があります")
    normalized = normalize_project_info(payload)
    validation = validate_project_info(normalized)
    if not validation.is_valid:
        raise ApiError(400, "バリデーションエラーがあります", errors=validation.by_field())
    return ProjectInfo.model_validate(normalized)


def _project_info_body(estimate_id: str | None, project_info: ProjectInfo) -> dict[str, Any]:
    return {"id": estimate_id, **project_info.model_dump(by_alias=True, mode="json")}


def _request_errors(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return messages


def create_app(
    *,
    service: EstimateService,
    calculator: CostCalculator | None = None,
    max_upload_files: int = MAX_UPLOAD_FILES,
) -> FastAPI:
    calculator = calculator or CostCalculator()
    app = FastAPI(title="Fabrication Estimator API", version="0.1.0")

    @app.middleware("http")
    async def trace_context(request: Request, call_next):
        header = request.headers.get("X-Cloud-Trace-Context", "")
        set_trace_id(header.split("/", 1)[0] or uuid.uuid4().hex)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
        body: dict[str, Any] = {"success": False, "message": detail.get("message")}
        if detail.get("errors"):
            body["errors"] = detail["errors"]
        return JSONResponse(body, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            {"success": False, "message": INVALID_REQUEST_MESSAGE, "errors": _request_errors(exc)},
            status_code=400,
        )

    @app.exception_handler(EstimateNotFoundError)
    async def estimate_not_found(request: Request, exc: EstimateNotFoundError) -> JSONResponse:
        return JSONResponse({"success": False, "message": NOT_FOUND_MESSAGE}, status_code=404)

    @app.exception_handler(LineItemNotFoundError)
    async def row_not_found(request: Request, exc: LineItemNotFoundError) -> JSONResponse:
        return JSONResponse({"success": False, "message": "行が見つかりません"}, status_code=404)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error",
            exc_info=exc,
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(
            {"success": False, "message": SERVER_ERROR_MESSAGE, "error": str(exc)},
            status_code=500,
        )

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    # -- estimates ---------------------------------------------------------

    @app.post("/api/estimate")
    async def save_estimate(estimate: Estimate) -> dict[str, Any]:
        _require_estimate_number(estimate)
        saved = service.save_estimate(estimate)
        return _ok(saved, "見積書を保存しました")

    @app.get("/api/estimate")
    async def list_estimates() -> dict[str, Any]:
        estimates = service.list_estimates()
        return _ok(estimates, count=len(estimates))

    @app.get("/api/estimate/search/{estimate_number}")
    async def search_estimate(estimate_number: str) -> dict[str, Any]:
        estimate = service.find_by_estimate_number(estimate_number)
        if estimate is None:
            raise ApiError(404, NOT_FOUND_MESSAGE)
        return _ok(estimate)

    @app.get("/api/estimate/{estimate_id}")
    async def get_estimate(estimate_id: str) -> dict[str, Any]:
        return _ok(service.get_estimate(estimate_id))

    @app.delete("/api/estimate/{estimate_id}")
    async def delete_estimate(estimate_id: str) -> dict[str, Any]:
        service.delete_estimate(estimate_id)
        return _ok(message="見積書を削除しました")

    # -- project info ------------------------------------------------------

    @app.post("/api/project-info")
    async def create_project_info(payload: Any = Body(...)) -> dict[str, Any]:
        project_info = _parse_project_info(payload)
        saved = service.save_estimate(Estimate(project_info=project_info))
        return _ok(_project_info_body(saved.id, saved.project_info), "基本情報が正常に保存されました")

    @app.get("/api/project-info/{estimate_id}")
    async def get_project_info(estimate_id: str) -> dict[str, Any]:
        return _ok(service.get_project_info(estimate_id))

    @app.put("/api/project-info/{estimate_id}")
    async def update_project_info(estimate_id: str, payload: Any = Body(...)) -> dict[str, Any]:
        project_info = service.update_project_info(estimate_id, _parse_project_info(payload))
        return _ok(_project_info_body(estimate_id, project_info), "基本情報が正常に更新されました")

    # -- cost-detail table -------------------------------------------------

    @app.get("/api/table-data/{estimate_id}")
    async def get_table_data(estimate_id: str) -> dict[str, Any]:
        rows = service.get_table_data(estimate_id)
        return _ok(rows, count=len(rows))

    @app.put("/api/table-data/{estimate_id}")
    async def replace_table_data(estimate_id: str, rows: Any = Body(...)) -> dict[str, Any]:
        if not isinstance(rows, list):
            raise ApiError(400, "テーブルデータは配列である必要があります")
        updated = service.replace_table_data(estimate_id, _parse_rows(rows))
        return _ok(updated, "原価明細を更新しました")

    @app.post("/api/table-data/{estimate_id}/rows", status_code=201)
    async def add_row(estimate_id: str) -> dict[str, Any]:
        return _ok(service.add_row(estimate_id), "行を追加しました")

    @app.put("/api/table-data/{estimate_id}/rows/{row_id}")
    async def update_row(estimate_id: str, row_id: str, patch: dict[str, Any] = Body(...)) -> dict[str, Any]:
        validation = validate_line_items([patch])
        if not validation.is_valid:
            raise ApiError(400, "バリデーションエラー", errors=validation.errors)
        return _ok(service.update_row(estimate_id, row_id, patch), "行を更新しました")

    @app.delete("/api/table-data/{estimate_id}/rows/{row_id}")
    async def delete_row(estimate_id: str, row_id: str) -> dict[str, Any]:
        service.delete_row(estimate_id, row_id)
        return _ok(message="行を削除しました")

    # -- cost calculation --------------------------------------------------

    @app.get("/api/cost-calculation/{estimate_id}")
    async def get_cost_calculation(estimate_id: str) -> dict[str, Any]:
        return _ok(service.get_cost_calculation(estimate_id))

    @app.put("/api/cost-calculation/{estimate_id}")
    async def update_cost_calculation(estimate_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        validation = validate_cost_calculation(payload)
        if not validation.is_valid:
            raise ApiError(400, "バリデーションエラー", errors=validation.errors)
        updated = service.update_manual_costs(estimate_id, payload)
        return _ok(updated, "原価計算データを更新しました")

    @app.post("/api/cost-calculation/{estimate_id}/recalculate")
    async def recalculate_estimate(estimate_id: str) -> dict[str, Any]:
        result = service.recalculate(estimate_id)
        return _ok(result.cost_calculation, "原価計算を実行しました")

    @app.post("/api/calculation")
    async def calculate(request: CalculateRequest) -> dict[str, Any]:
        if request.table_data is None:
            raise ApiError(400, "テーブルデータが必要です")
        validation = validate_cost_calculation(request.cost_calculation)
        if not validation.is_valid:
            raise ApiError(400, "バリデーションエラー", errors=validation.errors)
        rows = _parse_rows(request.table_data)
        result = calculator.recalculate_everything(rows, request.cost_calculation)
        return _ok(result.model_dump(), "原価計算が完了しました")

    # -- uploads -----------------------------------------------------------

    @app.post("/api/file-upload")
    async def upload_files(
        files: list[UploadFile] = File(...),
        parse_mode: str = Form("individual", alias="parseMode"),
    ) -> dict[str, Any]:
        payloads = [(upload.filename or "", await upload.read()) for upload in files]
        if not payloads:
            raise ApiError(400, "ファイルがアップロードされていません")

        validation = validate_files(
            [UploadedFileInfo(name=name, size=len(data)) for name, data in payloads],
            max_files=max_upload_files,
        )
        if not validation.is_valid:
            raise ApiError(400, "ファイル検証エラー", errors=validation.errors)

        try:
            mode = ParseMode.parse(parse_mode)
        except ValueError:
            raise ApiError(400, f"不明な解析モードです: {parse_mode}")
        expected = required_file_count(mode)
        if expected is not None and len(payloads) != expected:
            raise ApiError(400, f"{parse_mode}モードでは{expected}つのファイルが必要です")

        results: list[list[LineItem]] = []
        for name, data in payloads:
            try:
                rows = await asyncio.to_thread(parse_upload, name, data)
            except FileParseError as exc:
                logger.warning("Failed to parse upload", extra={"upload_filename": name, "error": str(exc)})
                raise ApiError(500, f"ファイル {name} の解析に失敗しました", errors=[str(exc)])
            results.append(rows)

        combined = combine_parsed_files(results, mode)
        logger.info(
            "Parsed uploaded files",
            extra={"files": len(payloads), "mode": mode.value, "rows": len(combined)},
        )
        return _ok(
            combined,
            f"{len(payloads)}個のファイルの解析が完了しました",
            parsedCount=len(combined),
        )

    # -- export ------------------------------------------------------------

    @app.post("/api/export/pdf")
    async def export_pdf(estimate: Estimate) -> Response:
        _require_estimate_number(estimate)
        content = await asyncio.to_thread(generate_pdf, estimate)
        return _attachment(content, export_filename(estimate, "pdf"), "application/pdf")

    @app.post("/api/export/excel")
    async def export_excel(estimate: Estimate) -> Response:
        _require_estimate_number(estimate)
        content = await asyncio.to_thread(generate_excel, estimate)
        return _attachment(content, export_filename(estimate, "xlsx"), XLSX_MEDIA_TYPE)

    @app.get("/api/export/pdf/{estimate_id}")
    async def export_saved_pdf(estimate_id: str) -> Response:
        estimate = service.get_estimate(estimate_id)
        content = await asyncio.to_thread(generate_pdf, estimate)
        return _attachment(content, export_filename(estimate, "pdf"), "application/pdf")

    @app.get("/api/export/excel/{estimate_id}")
    async def export_saved_excel(estimate_id: str) -> Response:
        estimate = service.get_estimate(estimate_id)
        content = await asyncio.to_thread(generate_excel, estimate)
        return _attachment(content, export_filename(estimate, "xlsx"), XLSX_MEDIA_TYPE)

    return app


__all__ = ["create_app"]
