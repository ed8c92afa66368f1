from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Who is acting and on behalf of which organization.

    Passed explicitly into every service call; the core never reads
    session state of its own.
    """

    organization_id: int
    actor: str = "staff"
