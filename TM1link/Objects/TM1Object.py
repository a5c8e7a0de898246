from abc import abstractmethod
from enum import Enum


class TM1Object:
    """ Base of all entity records. Equality, hashing and printing go through the JSON body
    the object would send to TM1

    """

    @property
    @abstractmethod
    def body(self) -> str:
        pass

    def __eq__(self, other):
        if not isinstance(other, TM1Object):
            return NotImplemented
        return type(self) is type(other) and self.body == other.body

    def __hash__(self):
        return hash((type(self).__name__, self.body))

    def __str__(self):
        return self.body

    def __repr__(self):
        return f"{type(self).__name__}:{self.body}"


class TM1ObjectType(Enum):
    """ Enum looked up by name, ignoring case and spaces: 'Consolidated', 'CONSOLIDATED' or 3 """

    def __str__(self):
        return self.name.capitalize()

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lookup = value.replace(" ", "").upper()
            if lookup in cls.__members__:
                return cls.__members__[lookup]
        raise ValueError(f"Invalid {cls.__qualname__}: '{value}'")
