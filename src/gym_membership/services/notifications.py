"""WhatsApp notifications for members and owners."""

import logging
from dataclasses import dataclass

from gym_membership.domain.models import CustomerRecord, MembershipRecord, OwnerRecord
from gym_membership.services.messaging import MessageSender

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y"


@dataclass(frozen=True)
class ReminderReport:
    """Outcome of a reminder batch."""

    sent: int
    failed: int


@dataclass
class NotificationService:
    """Best-effort message delivery; failures are logged, never raised."""

    sender: MessageSender

    async def membership_created(
        self,
        owner: OwnerRecord,
        customer: CustomerRecord,
        membership: MembershipRecord,
    ) -> None:
        """Send the payment receipt to the member and a summary to the owner."""
        await self._deliver(
            customer.phone_number, _customer_receipt(owner, customer, membership)
        )
        await self._deliver(
            owner.phone_number, _owner_summary(owner, customer, membership)
        )

    async def send_expiry_reminders(
        self, owner: OwnerRecord, customers: list[CustomerRecord]
    ) -> ReminderReport:
        """Remind each customer that their membership is about to end."""
        sent = 0
        for customer in customers:
            if await self._deliver(
                customer.phone_number, _renewal_reminder(owner, customer)
            ):
                sent += 1
        return ReminderReport(sent=sent, failed=len(customers) - sent)

    async def _deliver(self, recipient: str, text: str) -> bool:
        try:
            await self.sender.send(recipient, text)
        except Exception:
            logger.exception(
                "Error sending WhatsApp message", extra={"recipient": recipient}
            )
            return False
        logger.info("Message sent", extra={"recipient": recipient})
        return True


def _customer_receipt(
    owner: OwnerRecord, customer: CustomerRecord, membership: MembershipRecord
) -> str:
    lines = [
        owner.gym_name.upper(),
        "",
        "DEAR : Madam / Sir",
        "",
        f"UR ADMIS NO : {customer.gym_id}",
        "",
        f"LAST PAID DATE : {membership.bill_date.strftime(DATE_FORMAT)}",
        f"LAST PAID AMOUNT : {membership.amount:g} INR",
        f"PAYMENT MODE : {membership.payment_mode.upper()}",
    ]
    if membership.payment_details:
        lines.append(f"PAYMENT DETAILS : {membership.payment_details}")
    if customer.end_date:
        lines.append(f"VALID TILL : {customer.end_date.strftime(DATE_FORMAT)}")
    lines.extend(
        [
            "",
            "THANK YOU FOR RENEWING YOUR GYM FEE SUBSCRIPTION.",
            "BE FIT FOR A GOOD HEALTHY TOMORROW.",
            "",
            owner.gym_name.upper(),
            owner.phone_number,
            owner.name,
        ]
    )
    return "\n".join(lines)


def _owner_summary(
    owner: OwnerRecord, customer: CustomerRecord, membership: MembershipRecord
) -> str:
    lines = [
        f"Hi {owner.name},",
        (
            f"A new membership has been created for {customer.name} "
            f"({customer.phone_number})."
        ),
        "Membership Details:",
        f"- Duration: {membership.duration} months",
        f"- Start Date: {membership.start_date.strftime(DATE_FORMAT)}",
        f"- Payment Mode: {membership.payment_mode}",
    ]
    if membership.payment_details:
        lines.append(f"- Payment Details: {membership.payment_details}")
    lines.extend(
        [
            f"- Amount: {membership.amount:g} INR",
            f"- Personal Training: {'Yes' if membership.personal_training else 'No'}",
            f"- Bill Date: {membership.bill_date.strftime(DATE_FORMAT)}",
        ]
    )
    if customer.end_date:
        lines.append(
            f"- Customer End Date: {customer.end_date.strftime(DATE_FORMAT)}"
        )
    return "\n".join(lines)


def _renewal_reminder(owner: OwnerRecord, customer: CustomerRecord) -> str:
    end_date = (
        customer.end_date.strftime(DATE_FORMAT) if customer.end_date else "soon"
    )
    return "\n".join(
        [
            owner.gym_name.upper(),
            "",
            f"Dear {customer.name},",
            f"Your gym membership (admission no {customer.gym_id}) ends on {end_date}.",
            "Please renew your fee subscription to keep training with us.",
            "",
            owner.name,
            owner.phone_number,
        ]
    )
