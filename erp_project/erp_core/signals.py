from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Bill, Invoice, JournalEntry

""" Block invoice deletion if any payments are applied."""


# pre_delete signal auto-fires just before Django deletes a model instance
# it’s connected to the Invoice model
@receiver(pre_delete, sender=Invoice)
# Receiver function receives instance (Invoice being deleted)
def prevent_delete_invoice_with_payments(sender, instance, **kwargs):
    if instance.paid_amount > 0:
        # prevent delete
        raise ValidationError("Cannot delete invoice with recorded payments.")
    # sent invoices are in the ledger; cancel them instead
    if JournalEntry.objects.filter(
        reference_type="invoice", reference_id=instance.pk, status="posted",
        reversed_by__isnull=True,
    ).exists():
        raise ValidationError("Cannot delete a posted invoice; cancel it instead.")


"""Block bill deletion if any payments are applied."""


@receiver(pre_delete, sender=Bill)
def prevent_delete_bill_with_payments(sender, instance, **kwargs):
    if instance.paid_amount > 0:
        raise ValidationError("Cannot delete bill with recorded payments.")
    if JournalEntry.objects.filter(
        reference_type="bill", reference_id=instance.pk, status="posted",
        reversed_by__isnull=True,
    ).exists():
        raise ValidationError("Cannot delete an approved bill; cancel it instead.")

