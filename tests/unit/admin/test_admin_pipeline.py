from dataclasses import replace
from types import MappingProxyType

import pytest

from backoffice.admin import BeforeFilter, RequestContext, ResourceRegistry, Unauthorized, UnknownRoute
from backoffice.admin.before_filter import run_before_filter
from backoffice.admin.dispatcher import AdminDispatcher
from backoffice.admin.interceptors import merge_interceptors, normalize_specs, run_interceptors
from backoffice.admin.params import scrub_params
from backoffice.admin.resolver import BuiltinAction, CollectionAction, MemberAction, resolve_action
from backoffice.errors import RegistryError


class Widget:
    pass


def _context(**params):
    return RequestContext(path_info=["admin", "widgets"], params=dict(params))


def _grant(context, options):
    context.assigns["authorized"] = True
    return context


def _deny(context, options):
    context.assigns["authorized"] = False
    return context


def _noop(context, options):
    return context


# ---------------------------------------------------------------------- #
# ParamScrubber
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_scrub_params_cleans_resource_submap_on_create() -> None:
    params = {"resource": "widgets", "widget": {"name": "  Bolt ", "note": "   ", "tags": [" a ", ""]}}

    scrubbed = scrub_params(params, "widget", "create")

    assert scrubbed["widget"] == {"name": "Bolt", "note": None, "tags": ["a", None]}
    assert params["widget"]["name"] == "  Bolt "


@pytest.mark.unit
def test_scrub_params_strips_nul_characters() -> None:
    scrubbed = scrub_params({"widget": {"name": "Bo\x00lt"}}, "widget", "update")

    assert scrubbed["widget"]["name"] == "Bolt"


@pytest.mark.unit
def test_scrub_params_ignores_non_mutating_actions() -> None:
    params = {"widget": {"name": "  Bolt  "}}

    assert scrub_params(params, "widget", "index") is params


@pytest.mark.unit
def test_scrub_params_without_submap_is_identity() -> None:
    params = {"resource": "widgets", "widget": "plain"}

    assert scrub_params(params, "widget", "create") is params
    assert scrub_params({"resource": "widgets"}, "widget", "create") == {"resource": "widgets"}


# ---------------------------------------------------------------------- #
# InterceptorPipeline
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_interceptors_without_verdict_continue() -> None:
    registry = ResourceRegistry()
    definition = registry.register_resource(Widget, interceptors=[_noop])
    context = _context()

    result = run_interceptors(context, "index", definition)

    assert result is context
    assert context.authorized is None


@pytest.mark.unit
def test_interceptor_denial_halts_with_unauthorized() -> None:
    definition = ResourceRegistry().register_resource(Widget, interceptors=[_deny])

    result = run_interceptors(_context(), "show", definition)

    assert result == Unauthorized(resource_key="widgets", action="show")


@pytest.mark.unit
def test_nested_action_skips_interceptors() -> None:
    definition = ResourceRegistry().register_resource(Widget, interceptors=[_deny])
    context = _context()

    result = run_interceptors(context, "nested", definition)

    assert result is context
    assert "authorized" not in context.assigns


@pytest.mark.unit
def test_default_interceptors_run_before_resource_interceptors() -> None:
    calls = []

    def first(context, options):
        calls.append(("first", options.get("tag")))
        return context

    def second(context, options):
        calls.append(("second", options.get("tag")))
        return context

    definition = ResourceRegistry().register_resource(Widget, interceptors=[(second, {"tag": "resource"})])
    defaults = normalize_specs([(first, {"tag": "default"})])

    run_interceptors(_context(), "index", definition, defaults)

    assert calls == [("first", "default"), ("second", "resource")]


@pytest.mark.unit
def test_resource_interceptor_overrides_matching_default() -> None:
    defaults = normalize_specs([(_grant, {"tag": "default"}), _noop])
    overrides = [(_grant, MappingProxyType({"tag": "resource"}))]

    merged = merge_interceptors(defaults, overrides)

    assert [(ref, dict(options)) for ref, options in merged] == [(_noop, {}), (_grant, {"tag": "resource"})]


@pytest.mark.unit
def test_interceptor_dotted_path_is_resolved() -> None:
    specs = normalize_specs(["backoffice.admin.interceptors.require_login"])

    assert specs[0][0].__name__ == "require_login"


@pytest.mark.unit
def test_unknown_interceptor_path_raises_registry_error() -> None:
    with pytest.raises(RegistryError):
        normalize_specs(["backoffice.admin.interceptors.does_not_exist"])


@pytest.mark.unit
def test_denied_dispatch_keeps_context_returned_by_interceptors() -> None:
    def deny_with_notice(context, options):
        denied = replace(context, assigns={**context.assigns, "authorized": False}, flashes=[], resp_headers=[])
        denied.put_flash("error", "Staff only")
        denied.put_resp_header("X-Admin-Denied", "1")
        return denied

    registry = ResourceRegistry()
    registry.register_resource(Widget, interceptors=[deny_with_notice])
    context = _context(resource="widgets")

    result = AdminDispatcher(registry).dispatch(context, "index", "widgets")

    assert result.halted
    assert isinstance(result.outcome, Unauthorized)
    assert result.context is not context
    assert result.context.flashes == [("error", "Staff only")]
    assert result.context.get_resp_header("X-Admin-Denied") == "1"


# ---------------------------------------------------------------------- #
# BeforeFilterGate
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_before_filter_runs_for_listed_action() -> None:
    seen = []

    def hook(context, params):
        seen.append(params["resource"])
        return context.assign("owner", "alice")

    definition = ResourceRegistry().register_resource(Widget, before_filter=BeforeFilter(hook, only={"create"}))
    context = _context(resource="widgets")

    result = run_before_filter(context, "create", definition, context.params)

    assert seen == ["widgets"]
    assert result.assigns["owner"] == "alice"


@pytest.mark.unit
def test_before_filter_skipped_outside_scope() -> None:
    def hook(context, params):
        raise AssertionError("should not run")

    definition = ResourceRegistry().register_resource(Widget, before_filter=BeforeFilter(hook, except_={"index"}))
    context = _context()

    assert run_before_filter(context, "index", definition, context.params) is context


@pytest.mark.unit
def test_before_filter_absent_returns_context() -> None:
    definition = ResourceRegistry().register_resource(Widget)
    context = _context()

    assert run_before_filter(context, "create", definition, context.params) is context


# ---------------------------------------------------------------------- #
# ActionResolver
# ---------------------------------------------------------------------- #
@pytest.mark.unit
def test_member_action_wins_over_collection_and_builtin() -> None:
    def member(context, params):
        return None

    def collection(context, params):
        return None

    definition = ResourceRegistry().register_resource(
        Widget,
        member_actions={"show": member},
        collection_actions={"show": collection, "export": collection},
    )

    resolved = resolve_action(definition, "show")
    assert isinstance(resolved, MemberAction)
    assert resolved.fn is member

    exported = resolve_action(definition, "export")
    assert isinstance(exported, CollectionAction)
    assert exported.fn is collection


@pytest.mark.unit
def test_builtin_actions_resolve_by_name() -> None:
    definition = ResourceRegistry().register_resource(Widget)

    for action in ("index", "show", "new", "edit", "create", "update", "destroy", "batch_action", "csv", "nested"):
        resolved = resolve_action(definition, action)
        assert isinstance(resolved, BuiltinAction)
        assert resolved.name == action


@pytest.mark.unit
def test_unknown_action_resolves_to_unknown_route() -> None:
    definition = ResourceRegistry().register_resource(Widget)

    resolved = resolve_action(definition, "frobnicate")

    assert resolved == UnknownRoute(reason="UNKNOWN_ACTION", resource_key="widgets", action="frobnicate")


@pytest.mark.unit
def test_page_definition_only_resolves_index_and_custom_actions() -> None:
    def refresh(context, params):
        return None

    page = ResourceRegistry().register_page(
        "dashboard",
        lambda context: "<p>hi</p>",
        collection_actions={"refresh": refresh},
    )

    assert isinstance(resolve_action(page, "index"), BuiltinAction)
    assert isinstance(resolve_action(page, "refresh"), CollectionAction)
    assert isinstance(resolve_action(page, "new"), UnknownRoute)
    assert isinstance(resolve_action(page, "csv"), UnknownRoute)
