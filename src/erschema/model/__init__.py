"""Schema model: entities, entity lists and the Model aggregate."""

from erschema.model.attribute import Attribute, AttributeList, Domain, DomainList
from erschema.model.index import Index, IndexExpression, IndexExpressionList, IndexList
from erschema.model.item import ModelItem, OwnedItemList
from erschema.model.model import Model, ModelProperties
from erschema.model.relation import Relation, RelationList
from erschema.model.table import Table, TableList
from erschema.model.view import SubjectArea, SubjectAreaList, View, ViewList

__all__ = [
    "Attribute",
    "AttributeList",
    "Domain",
    "DomainList",
    "Index",
    "IndexExpression",
    "IndexExpressionList",
    "IndexList",
    "Model",
    "ModelItem",
    "ModelProperties",
    "OwnedItemList",
    "Relation",
    "RelationList",
    "SubjectArea",
    "SubjectAreaList",
    "Table",
    "TableList",
    "View",
    "ViewList",
]
