"""Shared fakes for the Supabase client. No test touches the network."""

from types import SimpleNamespace

import pytest

from step_dashboard.config import Settings


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.client.calls.append(("table", table))

    def select(self, columns):
        self.client.calls.append(("select", columns))
        return self

    def eq(self, column, value):
        self.client.calls.append(("eq", column, value))
        return self

    def execute(self):
        if self.client.error is not None:
            raise self.client.error
        return SimpleNamespace(data=self.client.rows)


class FakeAuth:
    def __init__(self):
        self.calls = []
        self.error = None
        self.user = SimpleNamespace(id="user-1", email="walker@example.com")
        self.session = SimpleNamespace(access_token="access", refresh_token="refresh")

    def _response(self):
        return SimpleNamespace(user=self.user, session=self.session)

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error

    def sign_in_with_password(self, credentials):
        self._call("sign_in_with_password", credentials)
        return self._response()

    def sign_up(self, credentials):
        self._call("sign_up", credentials)
        return self._response()

    def sign_out(self):
        self._call("sign_out")

    def reset_password_for_email(self, email):
        self._call("reset_password_for_email", email)

    def exchange_code_for_session(self, params):
        self._call("exchange_code_for_session", params)
        return self._response()


class FakeClient:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.calls = []
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)


class FakeStore:
    def __init__(self, documents=None, error=None):
        self.documents = documents or []
        self.error = error
        self.requested = []

    def fetch_documents(self, uid):
        self.requested.append(uid)
        if self.error is not None:
            raise self.error
        return self.documents


@pytest.fixture()
def settings():
    return Settings(supabase_url="https://demo.supabase.co", supabase_anon_key="anon")


@pytest.fixture()
def client():
    return FakeClient()
