"""Unit Tests for ReverseTopicMappingService and BindingModelValidator

Tests: scalar writes, defaults, relationships, references, nested topic
lists, map_to_parent, key/content type checks, model validation, round
trips through view and binding models
"""
import pytest
from dataclasses import dataclass, field
from typing import List, Optional

from topicgraph.mapping import AssociatedTopicBindingModel, TopicBindingModel, mapped
from topicgraph.topic import Topic


def no_author():
    return AssociatedTopicBindingModel(unique_key="")


@dataclass
class PageTopicBindingModel(TopicBindingModel):
    title: Optional[str] = None
    meta_title: Optional[str] = None
    body: Optional[str] = mapped(default=None, default_value="Coming soon")
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = None
    related: List[AssociatedTopicBindingModel] = field(default_factory=list)
    author: Optional[AssociatedTopicBindingModel] = field(default_factory=no_author)


@dataclass
class ContentItemTopicBindingModel(TopicBindingModel):
    description: Optional[str] = None
    category: Optional[str] = None


@dataclass
class ContentListTopicBindingModel(TopicBindingModel):
    content_items: List[ContentItemTopicBindingModel] = field(default_factory=list)


@dataclass
class AuthorIdBindingModel(TopicBindingModel):
    author_id: AssociatedTopicBindingModel = field(default_factory=no_author)


@dataclass
class SeoBindingModel:
    title: Optional[str] = None


@dataclass
class SeoPageBindingModel(TopicBindingModel):
    seo: SeoBindingModel = mapped(default_factory=SeoBindingModel, map_to_parent=True, attribute_prefix="Meta")
    notes: Optional[str] = mapped(default=None, disable=True)


@dataclass
class RequiredTitleBindingModel(TopicBindingModel):
    title: Optional[str] = mapped(default=None, required=True)


@dataclass
class ChildrenBindingModel(TopicBindingModel):
    children: List[TopicBindingModel] = field(default_factory=list)


@dataclass
class ParentBindingModel(TopicBindingModel):
    parent: Optional[AssociatedTopicBindingModel] = None


@dataclass
class UnknownAttributeBindingModel(TopicBindingModel):
    subtitle: Optional[str] = None


@dataclass
class SingleRelatedBindingModel(TopicBindingModel):
    related: Optional[AssociatedTopicBindingModel] = None


@dataclass
class StringRelatedBindingModel(TopicBindingModel):
    related: List[str] = field(default_factory=list)


@dataclass
class StringItemsBindingModel(TopicBindingModel):
    content_items: List[str] = field(default_factory=list)


@dataclass
class StringAuthorBindingModel(TopicBindingModel):
    author: Optional[str] = None


class PageTopic(Topic):
    pass


@pytest.fixture
def service(repository):
    from topicgraph.mapping import ReverseTopicMappingService

    return ReverseTopicMappingService(repository)


def page_model(**values):
    values.setdefault("key", "Careers")
    values.setdefault("content_type", "Page")
    return PageTopicBindingModel(**values)


class TestScalars:
    """Tests for scalar attributes."""

    @pytest.mark.asyncio
    async def test_map_creates_topic(self, service):
        topic = await service.map(page_model(title="Careers", is_featured=True, sort_order=2))

        assert topic.key == "Careers"
        assert topic.content_type == "Page"
        assert topic.is_new
        assert topic.title == "Careers"
        assert topic.attributes.get_value("IsFeatured") == "1"
        assert topic.attributes.get_value("SortOrder") == "2"
        assert topic.attributes.get_value("Body") == "Coming soon"

    @pytest.mark.asyncio
    async def test_map_onto_existing_topic(self, service, web):
        about = web.children["About"]

        result = await service.map(page_model(key="About", title="Company", is_featured=False), about)

        assert result is about
        assert about.title == "Company"
        assert about.attributes.get_value("IsFeatured") == "0"
        assert about.attributes.get_value("MetaTitle") is None
        assert "MetaTitle" in about.attributes.deleted_items
        assert about.attributes.is_dirty("Title")

    @pytest.mark.asyncio
    async def test_empty_key_keeps_target_key(self, service, web):
        about = web.children["About"]

        await service.map(page_model(key=""), about)

        assert about.key == "About"

    @pytest.mark.asyncio
    async def test_map_none_returns_target(self, service, web):
        about = web.children["About"]
        assert await service.map(None, about) is about
        assert await service.map(None) is None

    @pytest.mark.asyncio
    async def test_map_as_topic_subclass(self, service):
        topic = await service.map_as(page_model(), PageTopic)

        assert isinstance(topic, PageTopic)
        assert topic.key == "Careers"

    @pytest.mark.asyncio
    async def test_map_to_parent(self, service, web):
        about = web.children["About"]
        source = SeoPageBindingModel(key="About", content_type="Page", seo=SeoBindingModel(title="All about us"))

        await service.map(source, about)

        assert about.attributes.get_value("MetaTitle") == "All about us"
        assert about.title == "About Us"

    @pytest.mark.asyncio
    async def test_required_property(self, service):
        from topicgraph.exceptions import MappingModelValidationError

        with pytest.raises(MappingModelValidationError, match="title"):
            await service.map(RequiredTitleBindingModel(key="Careers", content_type="Page"))


class TestChecks:
    """Tests for key and content type checks."""

    @pytest.mark.asyncio
    async def test_unknown_content_type(self, service):
        from topicgraph.exceptions import MappingModelValidationError

        with pytest.raises(MappingModelValidationError, match="Unknown"):
            await service.map(TopicBindingModel(key="Careers", content_type="Unknown"))

    @pytest.mark.asyncio
    async def test_content_type_mismatch(self, service, graph):
        from topicgraph.exceptions import MappingModelValidationError

        team = graph.children["Team"]
        with pytest.raises(MappingModelValidationError, match="Container"):
            await service.map(page_model(key="Team"), team)

    @pytest.mark.asyncio
    async def test_key_mismatch(self, service, web):
        from topicgraph.exceptions import MappingModelValidationError

        with pytest.raises(MappingModelValidationError, match="Rename"):
            await service.map(page_model(key="Contact"), web.children["About"])


class TestAssociations:
    """Tests for relationships and references."""

    @pytest.mark.asyncio
    async def test_relationships(self, service, web):
        topic = await service.map(page_model(related=[
            AssociatedTopicBindingModel("Root:Web:About"),
            AssociatedTopicBindingModel("Root:Web:Products"),
        ]))

        assert [related.key for related in topic.relationships.get_topics("Related")] == ["About", "Products"]
        assert topic in web.children["About"].incoming_relationships.get_topics("Related")

    @pytest.mark.asyncio
    async def test_relationships_are_replaced(self, service, web):
        about = web.children["About"]
        contact = web.children["Contact"]

        await service.map(page_model(key="About", related=[AssociatedTopicBindingModel("Root:Web:Products")]), about)

        assert about.relationships.get_topics("Related") == [web.children["Products"]]
        assert about not in contact.incoming_relationships.get_topics("Related")
        assert about.relationships.is_dirty("Related")

    @pytest.mark.asyncio
    async def test_missing_relationship_target(self, service):
        from topicgraph.exceptions import TopicNotFoundError

        with pytest.raises(TopicNotFoundError, match="Root:Web:Missing"):
            await service.map(page_model(related=[AssociatedTopicBindingModel("Root:Web:Missing")]))

    @pytest.mark.asyncio
    async def test_reference(self, service, graph):
        topic = await service.map(page_model(author=AssociatedTopicBindingModel("Root:Team:Jeremy")))

        assert topic.references.get_topic("Author") is graph.children["Team"].children["Jeremy"]

    @pytest.mark.asyncio
    async def test_empty_reference_clears(self, service, web):
        about = web.children["About"]

        await service.map(page_model(key="About"), about)

        assert about.references.get_topic("Author") is None
        assert about.references.deleted_items == ["Author"]

    @pytest.mark.asyncio
    async def test_reference_without_unique_key(self, service):
        from topicgraph.exceptions import MappingModelValidationError

        with pytest.raises(MappingModelValidationError, match="unique_key"):
            await service.map(page_model(author=None))
        with pytest.raises(MappingModelValidationError, match="unique_key"):
            await service.map(page_model(author=AssociatedTopicBindingModel()))

    @pytest.mark.asyncio
    async def test_missing_reference_target(self, service):
        from topicgraph.exceptions import TopicNotFoundError

        with pytest.raises(TopicNotFoundError):
            await service.map(page_model(author=AssociatedTopicBindingModel("Root:Team:Nobody")))

    @pytest.mark.asyncio
    async def test_reference_id_attribute(self, service, graph):
        jeremy = graph.children["Team"].children["Jeremy"]
        source = AuthorIdBindingModel(
            key="Careers",
            content_type="Page",
            author_id=AssociatedTopicBindingModel("Root:Team:Jeremy"),
        )

        topic = await service.map(source)

        assert topic.attributes.get_value("AuthorId") == str(jeremy.id)
        assert topic.references.get_topic("AuthorId") is None


class TestNestedTopics:
    """Tests for nested topic lists."""

    @pytest.mark.asyncio
    async def test_existing_items_are_reused_and_orphans_removed(self, service, web):
        products = web.children["Products"]
        items = products.children["ContentItems"]
        widget = items.children["Widget"]
        source = ContentListTopicBindingModel(key="Products", content_type="ContentList", content_items=[
            ContentItemTopicBindingModel(key="Widget", content_type="ContentItem", description="New widget"),
            ContentItemTopicBindingModel(key="Sprocket", content_type="ContentItem", category="Tools"),
        ])

        await service.map(source, products)

        assert items.children.keys() == ["Widget", "Sprocket"]
        assert items.children["Widget"] is widget
        assert widget.description == "New widget"
        assert items.children["Sprocket"].attributes.get_value("Category") == "Tools"
        assert items.children["Sprocket"].is_new

    @pytest.mark.asyncio
    async def test_container_is_created(self, service):
        source = ContentListTopicBindingModel(key="Catalog", content_type="ContentList", content_items=[
            ContentItemTopicBindingModel(key="Sprocket", content_type="ContentItem"),
        ])

        topic = await service.map(source)

        container = topic.children["ContentItems"]
        assert container.content_type == "List"
        assert container.is_hidden
        assert container.children.keys() == ["Sprocket"]

    @pytest.mark.asyncio
    async def test_empty_list_clears_items(self, service, web):
        products = web.children["Products"]

        await service.map(ContentListTopicBindingModel(key="Products", content_type="ContentList"), products)

        assert len(products.children["ContentItems"].children) == 0


class TestBindingModelValidator:
    """Tests for validating binding models against content types."""

    @pytest.fixture
    def page(self, repository):
        return repository.get_content_type_descriptors()["Page"]

    def test_valid_model(self, page):
        from topicgraph.mapping import BindingModelValidator

        BindingModelValidator.validate_model(PageTopicBindingModel, page)
        BindingModelValidator.validate_model(SeoPageBindingModel, page)

    @pytest.mark.parametrize("model_type,message", [
        (ChildrenBindingModel, "child topics"),
        (ParentBindingModel, "parent topic"),
        (UnknownAttributeBindingModel, "Subtitle"),
        (SingleRelatedBindingModel, "isn't a list"),
        (StringRelatedBindingModel, "AssociatedTopicBindingModel"),
        (StringAuthorBindingModel, "AssociatedTopicBindingModel"),
    ])
    def test_invalid_models(self, page, model_type, message):
        from topicgraph.exceptions import MappingModelValidationError
        from topicgraph.mapping import BindingModelValidator

        with pytest.raises(MappingModelValidationError, match=message):
            BindingModelValidator.validate_model(model_type, page)

    def test_nested_items_must_be_binding_models(self, repository):
        from topicgraph.exceptions import MappingModelValidationError
        from topicgraph.mapping import BindingModelValidator

        content_list = repository.get_content_type_descriptors()["ContentList"]
        with pytest.raises(MappingModelValidationError, match="TopicBindingModel"):
            BindingModelValidator.validate_model(StringItemsBindingModel, content_list)

    @pytest.mark.asyncio
    async def test_map_validates_before_writing(self, service, web):
        from topicgraph.exceptions import MappingModelValidationError

        about = web.children["About"]
        with pytest.raises(MappingModelValidationError):
            await service.map(UnknownAttributeBindingModel(key="About", content_type="Page", subtitle="x"), about)
        assert about.attributes.get_value("Subtitle") is None


class TestRoundTrip:
    """Tests for mapping a topic out to a view model and back."""

    @pytest.mark.asyncio
    async def test_topic_view_model_binding_model_topic(self, repository, web):
        from topicgraph.mapping import AssociationTypes, ReverseTopicMappingService, TopicMappingService
        from topicgraph.view_models import create_view_model_lookup

        about = web.children["About"]
        view_model = await TopicMappingService(repository, create_view_model_lookup()).map(
            about, AssociationTypes.NONE
        )

        binding_model = page_model(
            key="AboutCopy",
            content_type=view_model.content_type,
            title=view_model.title,
            meta_title=view_model.meta_title,
            body=view_model.body,
            related=[AssociatedTopicBindingModel(topic.get_unique_key()) for topic in about.relationships.get_topics("Related")],
        )
        copy = await ReverseTopicMappingService(repository).map(binding_model)

        assert copy.title == about.title
        assert copy.attributes.get_value("MetaTitle") == about.attributes.get_value("MetaTitle")
        assert copy.relationships.get_topics("Related") == about.relationships.get_topics("Related")
