from dataclasses import asdict, fields, is_dataclass
from typing import List, Self
import datetime
import re
import weakref

from .errors import GraphError


class GraphResourceBase():
    """
    Intended to be subclassed by a dataclass but isnt actually a dataclass.
    Field names on the subclasses follow the Graph JSON names (camelCase) so
    translating is mostly asdict() one way and from_base() the other.
    """

    @classmethod
    def from_base(cls, base: dict|None) -> Self:
        """
        Build from a raw Graph dict.  Graph sprinkles in annotations like
        '@odata.etag' and fields we don't model so only take what we know.
        """
        if not base:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in dict(base).items() if k in known})

    def to_base(self) -> dict:
        """
        Default just return the dict representation of the object as needed by
        Graph.  Something more complicated can override.
        Call fixup() first to ensure all fields are in correct format.
        """
        self.fixup()
        return asdict(self)

    def trim(self) -> dict|None:
        """
        Return a 'trimmed' dict of the resource.  That is, removing any top level attributes
        that are an empty or None.  For empty needs to be a string, or container. For None
        needs to be a value like int or bool where 'not' could be a valid value.
        """
        b = self.to_base()
        if b:
            vals = dict(b.items())
            for k, v in vals.items():
                if v is None or (type(v) not in [int, bool, float] and not v):
                    del b[k]
        return b

    def fixup(self) -> None:
        """
        notify a subclass to do any field adjustments
        """
        pass

    def update_fields(self, **kwargs) -> List[str]:
        """
        Update fields that may be present.
        """
        updated_fields = []
        if is_dataclass(self):
            flist = fields(self)
            for k, v in kwargs.items():
                for f in flist:
                    if v is not None and k == f.name:
                        setattr(self, k, v)
                        updated_fields.append(k)
            self.fixup()
        return updated_fields


class GraphClientBound():
    """
    Mixin for resources that allow chained calls, e.g. group.list_members().
    Only a weak reference is held, the resource doesn't keep the client alive.
    """
    _client_ref: weakref.ref|None = None

    def set_graph_client(self, client) -> None:
        self._client_ref = weakref.ref(client) if client is not None else None

    @property
    def graph_client(self):
        client = self._client_ref() if self._client_ref is not None else None
        if client is None:
            raise GraphError(f"{self.__class__.__name__} is not attached to a live GraphClient")
        return client


# Graph hands out 7 fractional digits, fromisoformat only takes up to 6
_FRACTION = re.compile(r"\.\d+")


def parse_graph_datetime(value: str|datetime.datetime|None) -> datetime.datetime|None:
    """
    Parse a Graph timestamp, e.g. '2017-04-15T12:00:00.0000000' or
    '2017-04-15T12:00:00.123Z'.  Sub-second precision is dropped.
    """
    if value is None or isinstance(value, datetime.datetime):
        return value
    s = _FRACTION.sub("", str(value).strip())
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(s)


def format_graph_datetime(value: datetime.datetime|None) -> str|None:
    if value is None:
        return None
    if value.tzinfo is not None and value.utcoffset() == datetime.timedelta(0):
        return value.replace(tzinfo=None).isoformat() + "Z"
    return value.isoformat()
