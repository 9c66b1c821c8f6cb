import pytest

from backoffice import db


def _widget(app, widget_model, widget_id):
    with app.app_context():
        return db.session.get(widget_model, widget_id)


@pytest.fixture
def app(make_app, registry, widget_model):
    registry.register_resource(widget_model, menu_priority=1)
    return make_app(registry)


@pytest.fixture
def client(app):
    return app.test_client()


# ---------------------------------------------------------------------- #
# 读取
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_index_lists_records(app, client, seed_widgets) -> None:
    seed_widgets(app, "Bolt", "Nut")

    response = client.get("/admin/widgets")

    assert response.status_code == 200
    assert response.mimetype == "text/html"
    assert b"Bolt" in response.data
    assert b"Nut" in response.data


@pytest.mark.unit
def test_index_filters_and_orders(app, client, seed_widgets) -> None:
    seed_widgets(app, "Bolt", "Nut", "Washer")

    response = client.get("/admin/widgets?q[name_contains]=ut&order=name_asc")

    assert response.status_code == 200
    assert b"Nut" in response.data
    assert b"Bolt" not in response.data
    assert b"Washer" not in response.data


@pytest.mark.unit
def test_show_renders_record(app, client, seed_widgets) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.get(f"/admin/widgets/{widget_id}")

    assert response.status_code == 200
    assert b"Bolt" in response.data


@pytest.mark.unit
def test_show_missing_record_is_not_found(client) -> None:
    response = client.get("/admin/widgets/404")

    assert response.status_code == 404


@pytest.mark.unit
def test_new_renders_blank_form(client) -> None:
    response = client.get("/admin/widgets/new")

    assert response.status_code == 200
    assert b'name="widget[name]"' in response.data
    assert b'action="/admin/widgets"' in response.data


@pytest.mark.unit
def test_edit_renders_prefilled_form(app, client, seed_widgets) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.get(f"/admin/widgets/{widget_id}/edit")

    assert response.status_code == 200
    assert b'value="Bolt"' in response.data
    assert f'action="/admin/widgets/{widget_id}"'.encode() in response.data


# ---------------------------------------------------------------------- #
# create / update
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_create_valid_redirects_to_show_with_notice(app, client, widget_model, widget_count) -> None:
    response = client.post("/admin/widgets", data={"widget[name]": "  Bolt  ", "widget[quantity]": "3"})

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/admin/widgets/1")
    created = _widget(app, widget_model, 1)
    assert created.name == "Bolt"
    assert created.quantity == 3
    assert widget_count(app) == 1

    followed = client.get(response.headers["Location"])
    assert b"Widget was successfully created." in followed.data
    assert b"flash alert-success" in followed.data


@pytest.mark.unit
def test_create_invalid_rerenders_form_without_insert(app, client, widget_count) -> None:
    response = client.post("/admin/widgets", data={"widget[name]": "   ", "widget[quantity]": "many"})

    assert response.status_code == 200
    assert b"be blank" in response.data
    assert b"is invalid" in response.data
    assert b"flash alert-danger" in response.data
    assert b'value="many"' in response.data
    assert widget_count(app) == 0


@pytest.mark.unit
def test_create_accepts_json_body(app, client, widget_model) -> None:
    response = client.post("/admin/widgets", json={"widget": {"name": "Gear", "quantity": 7}})

    assert response.status_code == 302
    assert _widget(app, widget_model, 1).quantity == 7


@pytest.mark.unit
@pytest.mark.parametrize("method", ["post", "put", "patch"])
def test_update_valid_redirects_to_show(app, client, seed_widgets, widget_model, method) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = getattr(client, method)(f"/admin/widgets/{widget_id}", data={"widget[name]": "Nut"})

    assert response.status_code == 302
    assert response.headers["Location"].endswith(f"/admin/widgets/{widget_id}")
    updated = _widget(app, widget_model, widget_id)
    assert updated.name == "Nut"
    assert updated.quantity == 1

    followed = client.get(response.headers["Location"])
    assert b"Widget was successfully updated" in followed.data


@pytest.mark.unit
def test_update_invalid_keeps_record_unchanged(app, client, seed_widgets, widget_model) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.post(f"/admin/widgets/{widget_id}", data={"widget[name]": ""})

    assert response.status_code == 200
    assert b"be blank" in response.data
    assert _widget(app, widget_model, widget_id).name == "Bolt"


# ---------------------------------------------------------------------- #
# destroy / batch
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_destroy_removes_record(app, client, seed_widgets, widget_count) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.delete(f"/admin/widgets/{widget_id}")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/admin/widgets")
    assert widget_count(app) == 0

    followed = client.get(response.headers["Location"])
    assert b"Widget was successfully destroyed." in followed.data


@pytest.mark.unit
def test_method_override_delete_destroys(app, client, seed_widgets, widget_count) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.post(f"/admin/widgets/{widget_id}", data={"_method": "delete"})

    assert response.status_code == 302
    assert widget_count(app) == 0


@pytest.mark.unit
def test_batch_destroy_deletes_selection_and_reports_count(app, client, seed_widgets, widget_count) -> None:
    ids = seed_widgets(app, "Bolt", "Nut", "Washer")

    response = client.post(
        "/admin/widgets/batch_action",
        data={"batch_action": "destroy", "collection_selection[]": [str(ids[0]), str(ids[1])]},
    )

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/admin/widgets")
    assert widget_count(app) == 1

    followed = client.get(response.headers["Location"])
    assert b"Successfully destroyed 2 widgets." in followed.data


@pytest.mark.unit
def test_batch_destroy_single_record_uses_singular_noun(app, client, seed_widgets) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.post(
        "/admin/widgets/batch_action",
        data={"batch_action": "destroy", "collection_selection[]": [str(widget_id)]},
        follow_redirects=True,
    )

    assert b"Successfully destroyed 1 widget." in response.data


@pytest.mark.unit
def test_batch_destroy_rejects_non_integer_ids(app, client, seed_widgets, widget_count) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.post(
        "/admin/widgets/batch_action",
        data={"batch_action": "destroy", "collection_selection[]": [str(widget_id), "abc"]},
    )

    assert response.status_code == 400
    assert widget_count(app) == 1


@pytest.mark.unit
def test_batch_destroy_missing_record_is_not_found(app, client, seed_widgets) -> None:
    seed_widgets(app, "Bolt")

    response = client.post(
        "/admin/widgets/batch_action",
        data={"batch_action": "destroy", "collection_selection[]": ["999"]},
    )

    assert response.status_code == 404


@pytest.mark.unit
def test_unknown_batch_action_is_unknown_route(app, client, seed_widgets, widget_count) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = client.post(
        "/admin/widgets/batch_action",
        data={"batch_action": "archive", "collection_selection[]": [str(widget_id)]},
    )

    assert response.status_code == 404
    assert widget_count(app) == 1



@pytest.mark.unit
def test_batch_destroy_accepts_repeated_plain_selection_key(app, client, seed_widgets, widget_count) -> None:
    ids = seed_widgets(app, "Bolt", "Nut", "Washer")

    response = client.post(
        "/admin/widgets/batch_action",
        data={"batch_action": "destroy", "collection_selection": [str(pk) for pk in ids]},
        follow_redirects=True,
    )

    assert widget_count(app) == 0
    assert b"Successfully destroyed 3 widgets." in response.data


# ---------------------------------------------------------------------- #
# csv
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_csv_export_sets_headers_and_rows(app, client, seed_widgets) -> None:
    seed_widgets(app, "Bolt", "=SUM(A1)")

    response = client.get("/admin/widgets/csv")

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/csv; charset=utf-8"
    assert response.headers["Content-Disposition"] == 'inline; filename="widgets.csv"'
    lines = response.data.decode("utf-8").splitlines()
    assert lines[0] == "id,name,quantity,note"
    assert lines[1] == "2,'=SUM(A1),2,"
    assert lines[2] == "1,Bolt,1,"


@pytest.mark.unit
def test_csv_export_of_empty_table_has_empty_body(client) -> None:
    response = client.get("/admin/widgets/csv")

    assert response.status_code == 200
    assert response.data == b""
    assert response.headers["Content-Disposition"] == 'inline; filename="widgets.csv"'


# ---------------------------------------------------------------------- #
# 路由失败
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_unknown_resource_is_not_found(client) -> None:
    response = client.get("/admin/sprockets")

    assert response.status_code == 404


@pytest.mark.unit
def test_unknown_resource_json_error_payload(client) -> None:
    response = client.get("/admin/sprockets", headers={"Accept": "application/json"})

    assert response.status_code == 404
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["message_key"] == "UNKNOWN_RESOURCE"
    assert payload["category"] == "routing"


@pytest.mark.unit
def test_unknown_collection_action_is_not_found(client) -> None:
    response = client.get("/admin/widgets/collection/frobnicate")

    assert response.status_code == 404


@pytest.mark.unit
@pytest.mark.parametrize("method", ["get", "post"])
@pytest.mark.parametrize("action", ["destroy", "update", "edit"])
def test_member_route_does_not_reach_builtin_actions(app, client, seed_widgets, widget_count, method, action) -> None:
    (widget_id,) = seed_widgets(app, "Bolt")

    response = getattr(client, method)(f"/admin/widgets/{widget_id}/member/{action}", data={"widget[name]": "Nut"})

    assert response.status_code == 404
    assert widget_count(app) == 1


@pytest.mark.unit
@pytest.mark.parametrize("method", ["get", "post"])
def test_collection_route_does_not_reach_batch_destroy(app, client, seed_widgets, widget_count, method) -> None:
    ids = seed_widgets(app, "Bolt", "Nut")

    response = getattr(client, method)(
        "/admin/widgets/collection/batch_action",
        query_string={"batch_action": "destroy", "collection_selection[]": [str(pk) for pk in ids]},
    )

    assert response.status_code == 404
    assert widget_count(app) == 2


@pytest.mark.unit
@pytest.mark.parametrize("action", ["create", "csv", "index"])
def test_collection_route_rejects_other_builtin_actions(client, widget_count, app, action) -> None:
    response = client.post(f"/admin/widgets/collection/{action}", data={"widget[name]": "Bolt"})

    assert response.status_code == 404
    assert widget_count(app) == 0
