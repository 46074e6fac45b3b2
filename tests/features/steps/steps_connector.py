import json
from urllib.parse import parse_qs, urljoin, urlparse

import responses
from behave import given, then, when

from crm_connector import Connector


def _full(context, path):
    return urljoin(context.base, path.lstrip("/"))


@given('a source host "{base}" and a CRM host "{crm}"')
def step_hosts(context, base, crm):
    context.base = base.rstrip("/") + "/"
    context.crm = crm.rstrip("/")
    context.connector_config = {
        "envs": {"dev": {"base_url": base, "crm_base_url": crm}},
        "sources": {},
        "targets": {},
    }

    class _Logger:
        def info(self, *args, **kwargs):
            pass

        def warning(self, *args, **kwargs):
            pass

        def error(self, *args, **kwargs):
            pass

    context.logger = _Logger()


# ----------------- Source endpoints -----------------


@given(
    'an OData endpoint "{path}" serving pages of 2, 2 and 1 records'
)
def step_odata_three_pages(context, path):
    context.source_url = _full(context, path)

    def callback(request):
        q = parse_qs(urlparse(request.url).query)
        skip = int(q["$skip"][0])
        rows = {0: 2, 2: 2, 4: 1}.get(skip, 0)
        body = {"d": {"results": [{"ObjectID": str(skip + i)} for i in range(rows)]}}
        return (200, {"Content-Type": "application/json"}, json.dumps(body))

    context.responses.add_callback(
        responses.GET, context.source_url, callback=callback
    )


@given('an OData endpoint "{path}" serving two accounts')
def step_odata_two_accounts(context, path):
    context.source_url = _full(context, path)
    context.responses.add(
        responses.GET,
        context.source_url,
        json={
            "d": {
                "results": [
                    {"__metadata": {"uri": "x"}, "AccountName": "Acme", "WebSite": "acme.io"},
                    {"AccountName": "Beta", "WebSite": "beta.io"},
                ]
            }
        },
        status=200,
        content_type="application/json",
    )


@given(
    'a paged endpoint "{path}" where page 1 says has_next and page 2 says no more'
)
def step_paged_endpoint(context, path):
    context.source_url = _full(context, path)
    context.responses.add(
        responses.GET,
        context.source_url,
        json={
            "data": [{"id": "A"}, {"id": "B"}],
            "pagination": {"has_next": True},
        },
        status=200,
        content_type="application/json",
        match=[
            responses.matchers.query_param_matcher(
                {"page": "1", "page_size": "50"}
            )
        ],
    )
    context.responses.add(
        responses.GET,
        context.source_url,
        json={"data": [{"id": "C"}], "pagination": {"has_next": False}},
        status=200,
        content_type="application/json",
        match=[
            responses.matchers.query_param_matcher(
                {"page": "2", "page_size": "50"}
            )
        ],
    )


@given('an "{mode}" source "{name}" on "{path}" with page size {size:d}')
@given('a "{mode}" source "{name}" on "{path}" with page size {size:d}')
def step_source_config(context, mode, name, path, size):
    context.connector_config["sources"][name] = {
        "path": path,
        "pagination": {"mode": mode, "page_size": size},
    }


# ----------------- CRM target -----------------


@given('a companies target "{name}" with bearer token "{token}"')
def step_target_config(context, name, token):
    context.connector_config["targets"][name] = {
        "entity": "companies",
        "auth": {
            "subType": "BEARER_TOKEN",
            "properties": {"bearerToken": token},
        },
    }
    context.collection = f"{context.crm}/crm/v3/objects/companies"


@given('the CRM search finds "{domain}" as id "{record_id}"')
def step_crm_search(context, domain, record_id):
    def search(request):
        body = json.loads(request.body)
        value = body["filterGroups"][0]["filters"][0]["value"]
        results = [{"id": record_id}] if value == domain else []
        return (
            200,
            {"Content-Type": "application/json"},
            json.dumps({"results": results}),
        )

    context.responses.add_callback(
        responses.POST, f"{context.collection}/search", callback=search
    )
    context.responses.add(
        responses.PATCH,
        f"{context.collection}/{record_id}",
        json={"id": record_id},
        status=200,
    )
    context.responses.add(
        responses.POST, context.collection, json={"id": "900"}, status=201
    )


# ----------------- When steps -----------------


@when('I read source "{source}" in env "{env}"')
def step_read(context, source, env):
    connector = Connector(config=context.connector_config, log=context.logger)
    context.df = connector.read_frame(source, env)


@when('I sync source "{source}" into target "{target}" in env "{env}"')
def step_sync(context, source, target, env):
    connector = Connector(config=context.connector_config, log=context.logger)
    context.meta = connector.run_sync(source, target, env)


# ----------------- Then steps -----------------


def _source_calls(context):
    return [
        c
        for c in context.responses.calls
        if c.request.url.startswith(context.source_url)
    ]


@then("the result has {n:d} rows")
def step_assert_rows(context, n):
    assert hasattr(context, "df"), "No DataFrame on context"
    assert (
        len(context.df) == n
    ), f"Expected {n} rows, got {len(context.df)}.\n{context.df}"


@then('the endpoint was called with skips "{skips}"')
def step_assert_skips(context, skips):
    seen = [
        parse_qs(urlparse(c.request.url).query)["$skip"][0]
        for c in _source_calls(context)
    ]
    assert seen == skips.split(","), seen


@then("the endpoint was called {n:d} times")
def step_assert_call_count(context, n):
    assert len(_source_calls(context)) == n


@then(
    "{created:d} record was created and {updated:d} record was updated"
)
def step_assert_counts(context, created, updated):
    assert context.meta["created"] == created, context.meta
    assert context.meta["updated"] == updated, context.meta
    assert context.meta["failed"] == 0, context.meta


@then('every CRM call carried "{auth}"')
def step_assert_auth(context, auth):
    crm_calls = [
        c
        for c in context.responses.calls
        if c.request.url.startswith(context.crm)
    ]
    assert crm_calls, "No CRM calls recorded"
    for c in crm_calls:
        assert c.request.headers.get("Authorization") == auth, c.request.url
