"""
Memoization Metadata
====================

One ``MemoDescriptor`` is produced per rewritten function, after all of its
call sites are processed. The descriptor is everything a downstream
memoization runtime needs to build a lookup table for the synthesized
function; how the table is stored or evicted is that runtime's concern.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import IO, Any, Dict, List


@dataclass
class MemoDescriptor:
    original_name: str
    memoized_name: str
    # Textual types of the runtime parameters, in canonical order.
    parameter_order: List[str] = field(default_factory=list)
    # Distinct comma-joined folded constants, one per cache entry family.
    constant_key_fragments: List[str] = field(default_factory=list)
    parameter_names: List[str] = field(default_factory=list)
    # Declaration indices (parameters first, then implicit globals) of the
    # slots folded out of the runtime signature.
    folded_slots: List[int] = field(default_factory=list)
    # Declaration indices of kept slots that are constant at some call sites
    # but not all of them.
    partially_constant_slots: List[int] = field(default_factory=list)
    call_sites: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MetadataSink:
    """Receives descriptors from the pass. Subclasses decide the transport."""

    def emit(self, descriptor: MemoDescriptor):
        raise NotImplementedError


class CollectingSink(MetadataSink):
    """Keeps descriptors in memory, in emission order."""

    def __init__(self):
        self.descriptors: List[MemoDescriptor] = []

    def emit(self, descriptor: MemoDescriptor):
        self.descriptors.append(descriptor)

    def by_original_name(self) -> Dict[str, MemoDescriptor]:
        return {d.original_name: d for d in self.descriptors}


class JsonLinesSink(MetadataSink):
    """Writes one JSON object per descriptor to a text stream."""

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def emit(self, descriptor: MemoDescriptor):
        self.stream.write(json.dumps(descriptor.to_dict(), sort_keys=True))
        self.stream.write('\n')
