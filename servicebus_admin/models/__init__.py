from servicebus_admin.models.common import MessageCountDetails
from servicebus_admin.models.namespace import NamespaceProperties
from servicebus_admin.models.queue import QueueDescription, QueueRuntimeProperties
from servicebus_admin.models.rule import (
    CorrelationRuleFilter,
    EmptyRuleAction,
    FalseRuleFilter,
    RuleDescription,
    SqlRuleAction,
    SqlRuleFilter,
    TrueRuleFilter,
)
from servicebus_admin.models.search import SearchIndexer, SynonymMap
from servicebus_admin.models.subscription import (
    SubscriptionDescription,
    SubscriptionRuntimeProperties,
)
from servicebus_admin.models.topic import TopicDescription, TopicRuntimeProperties

__all__ = [
    "CorrelationRuleFilter",
    "EmptyRuleAction",
    "FalseRuleFilter",
    "MessageCountDetails",
    "NamespaceProperties",
    "QueueDescription",
    "QueueRuntimeProperties",
    "RuleDescription",
    "SearchIndexer",
    "SqlRuleAction",
    "SqlRuleFilter",
    "SubscriptionDescription",
    "SubscriptionRuntimeProperties",
    "SynonymMap",
    "TopicDescription",
    "TopicRuntimeProperties",
    "TrueRuleFilter",
]
