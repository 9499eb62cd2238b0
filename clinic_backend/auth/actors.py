"""Who is acting on an appointment."""

import enum
from dataclasses import dataclass


class ActorRole(str, enum.Enum):
    PATIENT = 'patient'
    PRACTITIONER = 'practitioner'
    OPERATOR = 'operator'


@dataclass(frozen=True)
class Actor:
    role: ActorRole
    subject: str

    @property
    def practitioner_id(self) -> int | None:
        if self.role is not ActorRole.PRACTITIONER:
            return None
        return int(self.subject)
