from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
from ..services.invoicing import approve_bill, send_invoice
from ..services.periods import activate_period, close_period
from ..services.subscriptions import extend_subscription, set_client_access

# ---------- Admin actions ----------


def _run_for_each(modeladmin, request, queryset, func, verb):
    """
    Call func(obj) for every selected row, one transaction each (the services
    open their own), and report per-row failures via admin messages.
    """
    success = failures = 0
    for obj in queryset:
        try:
            func(obj)
            success += 1
        except ValidationError as exc:
            failures += 1
            modeladmin.message_user(
                request,
                _("Could not %(verb)s %(obj)s: %(err)s") % {
                    "verb": verb, "obj": obj, "err": "; ".join(exc.messages)},
                level=messages.ERROR,
            )
    # Final summary message
    modeladmin.message_user(
        request,
        _("%(verb)s %(success)d of %(total)d. %(failures)d failed.") % {
            "verb": verb.capitalize(),
            "success": success,
            "total": success + failures,
            "failures": failures,
        },
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


""" Goes through services.periods so other active periods get closed """


@admin.action(description="Activate selected period")
def activate_periods(modeladmin, request, queryset):
    if queryset.count() != 1:
        modeladmin.message_user(
            request, "Select exactly one period to activate.", level=messages.ERROR)
        return
    _run_for_each(modeladmin, request, queryset,
                  lambda p: activate_period(p, user=request.user), "activate")


@admin.action(description="Close selected periods")
def close_periods(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset,
                  lambda p: close_period(p, user=request.user), "close")


""" Add button/action that posts the invoice and moves it to "sent" """


@admin.action(description="Send selected invoices (post to ledger)")
def send_invoices(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset.filter(status="draft"),
                  lambda inv: send_invoice(inv, user=request.user), "send")


@admin.action(description="Approve selected bills (post to ledger)")
def approve_bills(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset.filter(status="draft"),
                  lambda bill: approve_bill(bill, user=request.user), "approve")


@admin.action(description="Extend subscription by one month")
def extend_subscriptions(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset,
                  lambda c: extend_subscription(c, months=1, user=request.user), "extend")


@admin.action(description="Grant access")
def grant_access(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset,
                  lambda c: set_client_access(c, True, user=request.user), "enable")


@admin.action(description="Revoke access")
def revoke_access(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset,
                  lambda c: set_client_access(c, False, user=request.user), "disable")
