from abc import ABC, abstractmethod

from autoapply.models import CandidateJob


class JobSearchBase(ABC):
    name: str = ""

    @abstractmethod
    def search(self, query: str, location: str, limit: int = 10) -> list[CandidateJob]:
        pass
