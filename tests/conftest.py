"""Pytest fixtures for topicgraph tests

The graph fixture is a small site with a schema:

    Root [Container]
      Configuration [Container]
        ContentTypes [ContentTypeDescriptor]  (Key, ContentType, Title, View, IsHidden, IsDisabled, BaseTopic)
          Container, List, ContentTypeDescriptor, *AttributeDescriptor
          Page  (MetaTitle, Body, IsFeatured, SortOrder, Related, Author, AuthorId)
            ContentList  (ContentItems)
          ContentItem  (Description, Category)
        Metadata
          Categories
            LookupList [List]  Tools, Toys
      Web [Page]
        About [Page]       Related -> Contact, Author -> Team:Jeremy
        Contact [Page]     Related -> About
        Products [ContentList]
          ContentItems [List]  Widget, Gadget, Retired (disabled)
      Team [Container]
        Jeremy [Page]

Every topic is created with an id, so the graph starts clean, as if loaded
from storage.
"""
import pytest


ATTRIBUTE_DESCRIPTOR_TYPES = [
    "TextAttributeDescriptor",
    "BooleanAttributeDescriptor",
    "NumberAttributeDescriptor",
    "DateTimeAttributeDescriptor",
    "RelationshipAttributeDescriptor",
    "TopicReferenceAttributeDescriptor",
    "NestedTopicListAttributeDescriptor",
]


class GraphBuilder:
    """Creates clean topics with sequential ids."""

    def __init__(self):
        self.next_id = 1

    def create(self, key, content_type, parent=None, **attributes):
        from topicgraph.factory import TopicFactory

        topic = TopicFactory.create(key, content_type, parent, self.next_id)
        self.next_id += 1
        for attribute_key, value in attributes.items():
            topic.attributes.set_value(attribute_key, value, mark_dirty=False)
        return topic

    def attributes(self, content_type, **descriptors):
        """Add an Attributes container with descriptors given as Key=DescriptorType."""
        container = self.create("Attributes", "List", content_type)
        for key, descriptor_type in descriptors.items():
            self.create(key, descriptor_type, container)
        return container


def build_graph():
    builder = GraphBuilder()
    create = builder.create

    root = create("Root", "Container")
    configuration = create("Configuration", "Container", root)

    content_types = create("ContentTypes", "ContentTypeDescriptor", configuration)
    builder.attributes(
        content_types,
        Key="TextAttributeDescriptor",
        ContentType="TextAttributeDescriptor",
        Title="TextAttributeDescriptor",
        View="TextAttributeDescriptor",
        IsHidden="BooleanAttributeDescriptor",
        IsDisabled="BooleanAttributeDescriptor",
        BaseTopic="TopicReferenceAttributeDescriptor",
    )
    for key in ["Container", "List", "ContentTypeDescriptor"] + ATTRIBUTE_DESCRIPTOR_TYPES:
        create(key, "ContentTypeDescriptor", content_types)

    page = create("Page", "ContentTypeDescriptor", content_types)
    builder.attributes(
        page,
        MetaTitle="TextAttributeDescriptor",
        Body="TextAttributeDescriptor",
        IsFeatured="BooleanAttributeDescriptor",
        SortOrder="NumberAttributeDescriptor",
        Related="RelationshipAttributeDescriptor",
        Author="TopicReferenceAttributeDescriptor",
        AuthorId="TopicReferenceAttributeDescriptor",
    )
    content_list = create("ContentList", "ContentTypeDescriptor", page)
    builder.attributes(content_list, ContentItems="NestedTopicListAttributeDescriptor")

    content_item = create("ContentItem", "ContentTypeDescriptor", content_types)
    builder.attributes(content_item, Description="TextAttributeDescriptor", Category="TextAttributeDescriptor")

    metadata = create("Metadata", "Container", configuration)
    categories = create("Categories", "Container", metadata)
    lookup_list = create("LookupList", "List", categories)
    create("Tools", "Container", lookup_list, Title="Tools")
    create("Toys", "Container", lookup_list, Title="Toys")

    web = create("Web", "Page", root, Title="Web")
    about = create("About", "Page", web, Title="About Us", MetaTitle="About", IsFeatured="1", SortOrder="3")
    contact = create("Contact", "Page", web, Title="Contact")
    products = create("Products", "ContentList", web, Title="Products")
    items = create("ContentItems", "List", products, IsHidden="1")
    create("Widget", "ContentItem", items, Description="A widget", Category="Tools")
    create("Gadget", "ContentItem", items, Description="A gadget", Category="Toys")
    create("Retired", "ContentItem", items, IsDisabled="1")

    team = create("Team", "Container", root)
    jeremy = create("Jeremy", "Page", team, Title="Jeremy")

    about.relationships.set_topic("Related", contact, mark_dirty=False)
    contact.relationships.set_topic("Related", about, mark_dirty=False)
    about.references.set_topic("Author", jeremy, mark_dirty=False)

    return root


@pytest.fixture
def graph():
    """A clean site graph with its schema."""
    return build_graph()


@pytest.fixture
def repository(graph):
    """A MemoryTopicRepository over the site graph."""
    from topicgraph.repositories import MemoryTopicRepository

    return MemoryTopicRepository(graph)


@pytest.fixture
def web(graph):
    return graph.children["Web"]


@pytest.fixture
def topics_file(tmp_path):
    """The site graph written to a YAML file."""
    from topicgraph.serialization import dump_topics

    path = tmp_path / "topics.yaml"
    dump_topics(build_graph(), path)
    return path
