import io
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from fabrication_estimator.api import create_app
from fabrication_estimator.estimate_service import EstimateService
from fabrication_estimator.estimate_store import InMemoryEstimateStore

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client() -> TestClient:
    service = EstimateService(repository=InMemoryEstimateStore())
    return TestClient(create_app(service=service))


def estimate_payload(**project_info) -> dict:
    return {
        "projectInfo": {"estimateNumber": "EST-2025-0042", "customer": "東邦化工", **project_info},
        "tableData": [
            {
                "modelNumber": "SP-01",
                "name": "天板",
                "partType": "板金",
                "material": "SUS304",
                "dimensions": {"partType": "板金", "length": 1000, "width": 500, "thickness": 10},
                "quantity": 2,
                "unitPrice": 100,
                "isAuto": True,
            }
        ],
    }


def workbook_bytes(*rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["型式", "名称", "Part Type", "材質", "", "数量", "重量", "単価", "価格"])
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def create_estimate(client: TestClient) -> str:
    response = client.post("/api/estimate", json=estimate_payload())
    assert response.status_code == 200
    return response.json()["data"]["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_estimate_crud(client):
    estimate_id = create_estimate(client)

    body = client.get(f"/api/estimate/{estimate_id}").json()
    assert body["success"] is True
    assert body["data"]["projectInfo"]["customer"] == "東邦化工"
    assert body["data"]["tableData"][0]["modelNumber"] == "SP-01"

    search = client.get("/api/estimate/search/EST-2025-0042").json()
    assert search["data"]["id"] == estimate_id

    listing = client.get("/api/estimate").json()
    assert listing["count"] == 1

    deleted = client.delete(f"/api/estimate/{estimate_id}")
    assert deleted.json() == {"success": True, "message": "見積書を削除しました"}

    missing = client.get(f"/api/estimate/{estimate_id}")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "見積書が見つかりません"}


def test_save_requires_estimate_number(client):
    response = client.post("/api/estimate", json={"projectInfo": {"customer": "x"}})
    assert response.status_code == 400
    assert response.json()["message"] == "見積番号は必須です"


def test_search_unknown_number(client):
    assert client.get("/api/estimate/search/NOPE").status_code == 404


def test_table_rows(client):
    estimate_id = create_estimate(client)

    added = client.post(f"/api/table-data/{estimate_id}/rows")
    assert added.status_code == 201
    row_id = added.json()["data"]["id"]

    updated = client.put(f"/api/table-data/{estimate_id}/rows/{row_id}", json={"quantity": 4})
    assert updated.json()["data"]["quantity"] == 4

    rejected = client.put(f"/api/table-data/{estimate_id}/rows/{row_id}", json={"quantity": -1})
    assert rejected.status_code == 400
    assert rejected.json()["errors"] == ["1行目の数量は0以上である必要があります"]

    assert client.get(f"/api/table-data/{estimate_id}").json()["count"] == 2
    assert client.delete(f"/api/table-data/{estimate_id}/rows/{row_id}").status_code == 200
    assert client.delete(f"/api/table-data/{estimate_id}/rows/{row_id}").status_code == 404

    not_a_list = client.put(f"/api/table-data/{estimate_id}", json={"rows": []})
    assert not_a_list.status_code == 400


def test_cost_calculation_update_and_recalculate(client):
    estimate_id = create_estimate(client)

    invalid = client.put(f"/api/cost-calculation/{estimate_id}", json={"transportationCost": -5, "designCost": "abc"})
    assert invalid.status_code == 400
    assert len(invalid.json()["errors"]) == 2

    updated = client.put(f"/api/cost-calculation/{estimate_id}", json={"designCost": 10000, "materialCost": 1})
    cost = updated.json()["data"]
    assert cost["designCost"] == 10000
    assert cost["materialCost"] == 0
    assert cost["totalCost"] == 10000

    recalculated = client.post(f"/api/cost-calculation/{estimate_id}/recalculate").json()["data"]
    assert recalculated["materialCost"] == pytest.approx(7930)
    assert recalculated["designCost"] == 10000
    assert client.get(f"/api/cost-calculation/{estimate_id}").json()["data"] == recalculated


def test_calculation_endpoint(client):
    payload = estimate_payload()
    response = client.post(
        "/api/calculation",
        json={"tableData": payload["tableData"], "costCalculation": {"designCost": 500}},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tableData"][0]["weight"] == pytest.approx(39.65)
    cost = data["costCalculation"]
    assert cost["materialCost"] == pytest.approx(7930)
    assert cost["processingCost"] == pytest.approx(39650 + 5000)
    assert cost["totalCost"] == pytest.approx(7930 + 44650 + 500)

    assert client.post("/api/calculation", json={"costCalculation": {}}).status_code == 400


def test_upload_merges_two_files(client):
    first = workbook_bytes(("A100", "Bolt", "", "", None, 5, 1.5, 10))
    second = workbook_bytes(("A100", "Bolt", "", "", None, 3, 0, 12), ("B200", "Nut", "", "", None, 1, 0, 2))
    response = client.post(
        "/api/file-upload",
        data={"parseMode": "2-file"},
        files=[("files", ("main.xlsx", first, XLSX)), ("files", ("sub.xlsx", second, XLSX))],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["parsedCount"] == 2
    bolt = body["data"][0]
    assert bolt["quantity"] == 8
    assert bolt["price"] == 86


def test_upload_checks_file_count_for_mode(client):
    response = client.post(
        "/api/file-upload",
        data={"parseMode": "2-file"},
        files=[("files", ("main.xlsx", workbook_bytes(), XLSX))],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "2-fileモードでは2つのファイルが必要です"


def test_upload_rejects_unsupported_files(client):
    response = client.post("/api/file-upload", files=[("files", ("notes.txt", b"hello", "text/plain"))])
    assert response.status_code == 400
    assert response.json()["message"] == "ファイル検証エラー"


def test_exports(client):
    excel = client.post("/api/export/excel", json=estimate_payload())
    assert excel.status_code == 200
    assert excel.headers["content-type"] == XLSX
    assert quote("見積書_EST-2025-0042_") in excel.headers["content-disposition"]

    pdf = client.post("/api/export/pdf", json=estimate_payload())
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")

    assert client.post("/api/export/pdf", json={"projectInfo": {}}).status_code == 400


PROJECT_INFO = {
    "estimateNumber": " EST-2025-0099 ",
    "customer": "東邦化工",
    "deliveryDestination": "千葉工場",
    "equipmentName": "反応槽架台",
    "productionQuantity": 2,
    "productionUnit": "台",
    "deliveryDate": "2025-12-20",
    "model": "RT-300",
    "equipmentShape": "角型",
    "weight": 850,
}


def test_project_info_routes(client):
    created = client.post("/api/project-info", json=PROJECT_INFO)
    assert created.status_code == 200
    data = created.json()["data"]
    assert data["estimateNumber"] == "EST-2025-0099"
    estimate_id = data["id"]

    fetched = client.get(f"/api/project-info/{estimate_id}").json()["data"]
    assert fetched["deliveryDate"] == "2025-12-20"
    assert fetched["equipmentShape"] == "角型"

    updated = client.put(f"/api/project-info/{estimate_id}", json={**PROJECT_INFO, "customer": "新客先"})
    assert updated.status_code == 200
    assert updated.json()["data"]["customer"] == "新客先"
    assert client.get(f"/api/estimate/{estimate_id}").json()["data"]["projectInfo"]["customer"] == "新客先"

    assert client.get("/api/project-info/missing").status_code == 404
    assert client.put("/api/project-info/missing", json=PROJECT_INFO).status_code == 404


def test_project_info_validation_errors_are_keyed_by_field(client):
    response = client.post("/api/project-info", json={**PROJECT_INFO, "customer": "", "productionUnit": "セット"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"] == {"customer": "客先は必須です", "productionUnit": "単位を選択してください"}


def test_malformed_body_uses_error_envelope(client):
    response = client.post("/api/estimate", json={"projectInfo": {"estimateNumber": "EST-1", "productionUnit": "セット"}})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "リクエストの形式が不正です"
    assert any(error.startswith("projectInfo.productionUnit") for error in body["errors"])


def test_export_saved_estimate(client):
    estimate_id = create_estimate(client)

    excel = client.get(f"/api/export/excel/{estimate_id}")
    assert excel.status_code == 200
    assert excel.headers["content-type"] == XLSX
    assert quote("見積書_EST-2025-0042_") in excel.headers["content-disposition"]

    pdf = client.get(f"/api/export/pdf/{estimate_id}")
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")


def test_export_unknown_estimate(client):
    for kind in ("pdf", "excel"):
        response = client.get(f"/api/export/{kind}/missing")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "見積書が見つかりません"}
