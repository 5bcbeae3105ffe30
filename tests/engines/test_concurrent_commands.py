"""
Interleaved commands: a second command commits while the first is
between its checks and its commit. The first must fail with a
ConflictError and leave nothing behind.
"""

import pytest

from core.commands.errors import ConflictError, PreconditionError
from core.store import InMemoryBillingStore


class InterleavingStore(InMemoryBillingStore):
    """Runs `before_next_commit` once, right before the next commit is checked."""

    def __init__(self):
        super().__init__()
        self.before_next_commit = None

    def _apply(self, ops, reads=None, scans=()):
        hook, self.before_next_commit = self.before_next_commit, None
        if hook is not None:
            hook()
        return super()._apply(ops, reads, scans)


@pytest.fixture
def store():
    return InterleavingStore()


def _signed_quote(deps, run, owner, project_id):
    from engines.quotes.commands import QuoteCreateRequest, QuoteTransitionRequest

    quote_id = run(deps.quotes, QuoteCreateRequest(project_id=project_id), owner).quote.quote_id
    run(deps.quotes, QuoteTransitionRequest(quote_id=quote_id, target_status="SENT"), owner)
    run(deps.quotes, QuoteTransitionRequest(quote_id=quote_id, target_status="SIGNED"), owner)
    return quote_id


class TestInvoices:
    def test_staged_invoices_cannot_over_invoice(self, store, deps, run, owner, viewer,
                                                 business_id, priced_project):
        from engines.invoices.commands import InvoiceCreateStagedRequest

        request = InvoiceCreateStagedRequest(project_id=priced_project, mode="AMOUNT", value=8000)
        store.before_next_commit = lambda: run(deps.invoices, request, owner)

        with pytest.raises(ConflictError):
            run(deps.invoices, request, owner)

        invoices = deps.invoices.list_invoices(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert [i.total_cents for i in invoices] == [8000]
        summary = deps.billing.get_billing_summary(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert summary.already_invoiced_cents == 8000
        assert summary.remaining_to_invoice_cents == 2000

    def test_retry_after_conflict_sees_fresh_state(self, store, deps, run, owner,
                                                   priced_project):
        from engines.invoices.commands import InvoiceCreateStagedRequest

        request = InvoiceCreateStagedRequest(project_id=priced_project, mode="AMOUNT", value=8000)
        store.before_next_commit = lambda: run(deps.invoices, request, owner)
        with pytest.raises(ConflictError):
            run(deps.invoices, request, owner)

        with pytest.raises(PreconditionError) as excinfo:
            run(deps.invoices, request, owner)
        assert excinfo.value.code == "AMOUNT_EXCEEDS_REMAINING"

    def test_one_open_invoice_per_quote(self, store, deps, run, owner, viewer,
                                        business_id, priced_project):
        from engines.invoices.commands import InvoiceCreateFromQuoteRequest

        quote_id = _signed_quote(deps, run, owner, priced_project)
        request = InvoiceCreateFromQuoteRequest(quote_id=quote_id)
        store.before_next_commit = lambda: run(deps.invoices, request, owner)

        with pytest.raises(ConflictError):
            run(deps.invoices, request, owner)

        invoices = deps.invoices.list_invoices(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert [i.quote_id for i in invoices] == [quote_id]


class TestArchivedProject:
    def test_quote_not_created_on_project_archived_meanwhile(self, store, deps, run, owner,
                                                             viewer, business_id,
                                                             priced_project):
        from engines.projects.commands import ProjectArchiveRequest
        from engines.quotes.commands import QuoteCreateRequest

        store.before_next_commit = lambda: run(
            deps.projects, ProjectArchiveRequest(project_id=priced_project), owner
        )
        with pytest.raises(ConflictError):
            run(deps.quotes, QuoteCreateRequest(project_id=priced_project), owner)

        quotes = deps.quotes.list_quotes(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert quotes == []
        project = deps.projects.get_project(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert project.archived_at is not None

    def test_service_not_added_to_project_archived_meanwhile(self, store, deps, run, owner,
                                                             viewer, business_id,
                                                             priced_project):
        from engines.projects.commands import ProjectArchiveRequest, ProjectServiceAddRequest

        store.before_next_commit = lambda: run(
            deps.projects, ProjectArchiveRequest(project_id=priced_project), owner
        )
        with pytest.raises(ConflictError):
            run(deps.projects, ProjectServiceAddRequest(
                project_id=priced_project, service_id="svc-seo"), owner)

        snapshot = deps.pricing.get_pricing(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert len(snapshot.items) == 2


class TestIndependentCommands:
    def test_unrelated_project_does_not_conflict(self, store, deps, run, owner,
                                                 priced_project):
        from engines.invoices.commands import InvoiceCreateStagedRequest
        from engines.projects.commands import ProjectCreateRequest

        store.before_next_commit = lambda: run(
            deps.projects, ProjectCreateRequest(name="Other"), owner
        )
        result = run(deps.invoices, InvoiceCreateStagedRequest(
            project_id=priced_project, mode="AMOUNT", value=8000), owner)
        assert result.invoice.total_cents == 8000
