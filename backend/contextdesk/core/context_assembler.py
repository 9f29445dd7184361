"""
Context Assembler - gathers memories and knowledge for a single turn.

Every collaborator call is best-effort: a failure, a timeout or a missing
collaborator degrades to an empty result and is logged at WARNING. The
caller must have stored the user message before calling any of these.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .classifier import Classifier, RuleBasedClassifier
from ..memory import KnowledgeStore, MemoryProvider
from ..models import KnowledgeDoc, MemoryAtom, MEMORY_TYPES

logger = logging.getLogger(__name__)


@dataclass
class AssembledContext:
    candidates: List[MemoryAtom] = field(default_factory=list)
    memories: List[MemoryAtom] = field(default_factory=list)
    docs: List[KnowledgeDoc] = field(default_factory=list)
    namespace: str = "default"


def _normalize_memory(item: Dict[str, Any]) -> Optional[MemoryAtom]:
    if not isinstance(item, dict):
        return None
    text = item.get("text") or item.get("memory")
    if not text:
        return None
    metadata = item.get("metadata") or {}
    memory_type = metadata.get("type")
    if memory_type not in MEMORY_TYPES:
        memory_type = "note"
    tags = metadata.get("tags") or []
    if not isinstance(tags, list):
        tags = []
    return MemoryAtom(text=str(text), type=memory_type, tags=[str(t) for t in tags])


def _normalize_doc(item: Dict[str, Any]) -> Optional[KnowledgeDoc]:
    if not isinstance(item, dict):
        return None
    text = item.get("text")
    if not text:
        return None
    return KnowledgeDoc(id=item.get("id"), text=str(text), metadata=item.get("metadata") or {})


class ContextAssembler:
    def __init__(
        self,
        memory_provider: Optional[MemoryProvider] = None,
        knowledge_store: Optional[KnowledgeStore] = None,
        classifier: Optional[Classifier] = None,
        default_namespace: str = "default",
        memory_search_limit: int = 8,
        knowledge_top_k: int = 5,
        timeout: float = 20.0,
    ):
        self.memory_provider = memory_provider
        self.knowledge_store = knowledge_store
        self.classifier = classifier or RuleBasedClassifier()
        self.default_namespace = default_namespace
        self.memory_search_limit = memory_search_limit
        self.knowledge_top_k = knowledge_top_k
        self.timeout = timeout

    def classify(self, utterance: str, tags: Sequence[str]) -> List[MemoryAtom]:
        return self.classifier.classify(utterance, tags)

    async def persist(self, user_id: str, atoms: Sequence[MemoryAtom]) -> int:
        """
        Write atoms to the memory collaborator one at a time.

        Returns:
            int: Number of atoms stored successfully
        """
        if not atoms or self.memory_provider is None:
            return 0

        stored = 0
        for atom in atoms:
            try:
                await asyncio.wait_for(
                    self.memory_provider.add(
                        user_id, atom.text, {"type": atom.type, "tags": list(atom.tags)}
                    ),
                    timeout=self.timeout,
                )
                stored += 1
            except Exception as e:
                logger.warning(
                    f"Memory add failed: {e!r}",
                    extra={"extra_fields": {"user_id": user_id, "type": atom.type}}
                )
        return stored

    async def retrieve_memories(
        self, user_id: str, query: str, tags: Sequence[str]
    ) -> List[MemoryAtom]:
        """Memories relevant to the query, restricted to ones sharing a tag when tags are given."""
        if self.memory_provider is None:
            return []

        try:
            raw = await asyncio.wait_for(
                self.memory_provider.search(query, user_id, self.memory_search_limit),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(
                f"Memory search failed: {e!r}",
                extra={"extra_fields": {"user_id": user_id}}
            )
            return []

        atoms = [atom for atom in (_normalize_memory(item) for item in raw or []) if atom]
        if tags:
            wanted = set(tags)
            atoms = [atom for atom in atoms if wanted.intersection(atom.tags)]
        return atoms

    async def retrieve_knowledge(
        self, namespace: str, query: str, k: Optional[int] = None
    ) -> List[KnowledgeDoc]:
        if self.knowledge_store is None:
            return []
        k = self.knowledge_top_k if k is None else k

        try:
            raw = await asyncio.wait_for(
                self.knowledge_store.search(namespace, query, k),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(
                f"Knowledge search failed: {e!r}",
                extra={"extra_fields": {"namespace": namespace}}
            )
            return []

        docs = [doc for doc in (_normalize_doc(item) for item in raw or []) if doc]
        return docs[:k]

    def namespace_for(self, tags: Sequence[str]) -> str:
        return tags[0] if tags else self.default_namespace

    async def assemble(self, user_id: str, utterance: str, tags: Sequence[str]) -> AssembledContext:
        """Run classify, persist, retrieve memories and retrieve knowledge, in that order."""
        candidates = self.classify(utterance, tags)
        await self.persist(user_id, candidates)
        memories = await self.retrieve_memories(user_id, utterance, tags)
        namespace = self.namespace_for(tags)
        docs = await self.retrieve_knowledge(namespace, utterance)

        logger.debug(
            "Context assembled",
            extra={"extra_fields": {
                "user_id": user_id,
                "candidates": len(candidates),
                "memories": len(memories),
                "docs": len(docs),
                "namespace": namespace,
            }}
        )
        return AssembledContext(
            candidates=candidates, memories=memories, docs=docs, namespace=namespace
        )
