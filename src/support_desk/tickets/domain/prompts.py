"""
Prompt Builders
===============

All prompt text sent to the language model lives here.
"""

from typing import List, Sequence

from support_desk.tickets.domain.entities import DraftContext


class ClassificationPromptBuilder:
    """Builds the single-label classification prompt."""

    SYSTEM_PROMPT = """You are a customer support email classifier.

Classify each email into exactly one of these categories:
- Refund: requests for money back, refunds, returns
- Payment Failure: failed payments, declined cards, billing errors
- Invoice: invoice requests, billing questions, payment confirmations
- Technical Issue: software bugs, login problems, feature requests
- Account: account management, password resets, profile changes
- General: general inquiries, feedback, anything else

Respond with only the category name, for example: Refund"""

    @classmethod
    def build_messages(cls, subject: str, body: str) -> List[dict]:
        return [
            {"role": "system", "content": cls.SYSTEM_PROMPT},
            {"role": "user", "content": f"Email Subject: {subject}\nEmail Body: {body}"},
        ]


class DraftPromptBuilder:
    """
    Builds the reply-drafting prompt.

    Similar past tickets, when available, are appended as reference cases
    including the reply that was drafted for them.
    """

    SYSTEM_PROMPT = (
        "You are a professional customer support agent. Write helpful, empathetic replies. "
        "Do not include a subject line or a 'Re:' prefix. Start directly with the greeting "
        "and finish with a professional signature."
    )

    GUIDELINES = """Guidelines:
- Be professional, empathetic and helpful
- Address the customer's specific concern
- Keep the reply concise but complete
- Ask politely for any missing information
- Do not make promises the support team cannot keep"""

    NO_RESPONSE_PLACEHOLDER = "No response available"

    @classmethod
    def build_context(cls, similar: Sequence[DraftContext]) -> str:
        blocks = []
        for case in similar:
            blocks.append(
                "Similar Ticket:\n"
                f"Subject: {case.subject}\n"
                f"Body: {case.body}\n"
                f"Response: {case.prior_response or cls.NO_RESPONSE_PLACEHOLDER}"
            )
        return "\n\n".join(blocks)

    @classmethod
    def build_messages(
        cls,
        subject: str,
        body: str,
        category: str,
        similar: Sequence[DraftContext]
    ) -> List[dict]:
        prompt = (
            "Write a reply to the following customer email.\n\n"
            f"Subject: {subject}\n"
            f"Body: {body}\n"
            f"Category: {category}\n"
        )
        if similar:
            prompt += (
                "\nHere are similar past tickets and their responses for reference:\n\n"
                f"{cls.build_context(similar)}\n"
            )
        prompt += f"\n{cls.GUIDELINES}\n\nReply:"
        return [
            {"role": "system", "content": cls.SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
