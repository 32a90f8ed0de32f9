"""Unit Tests for topic repositories

Tests: loading, content type registry, save (ids, recursion, deferred
associations, integrity errors), rename/move/delete events, deletion rules,
rollback, attribute selection for storage
"""
import pytest
from unittest.mock import Mock


class TestLoad:
    """Tests for MemoryTopicRepository.load."""

    def test_load_by_unique_key(self, repository, web):
        assert repository.load("Root:Web:About") is web.children["About"]
        assert repository.load("Web:About") is web.children["About"]
        assert repository.load("Root:Web:Missing") is None

    def test_load_by_id(self, repository, web):
        about = web.children["About"]
        assert repository.load(about.id) is about
        assert repository.load(9999) is None

    def test_load_root(self, repository, graph):
        assert repository.load() is graph
        assert repository.load(-1) is graph
        assert repository.load("Root") is graph

    def test_default_root(self):
        from topicgraph.repositories import MemoryTopicRepository

        repository = MemoryTopicRepository()
        assert repository.root.key == "Root"
        assert repository.root.content_type == "Container"


class TestContentTypes:
    """Tests for the content type registry."""

    def test_registry_loads_from_configuration(self, repository):
        content_types = repository.get_content_type_descriptors()

        assert "Page" in content_types
        assert "ContentItem" in content_types
        assert "ContentTypes" in content_types

    def test_attribute_descriptors_are_inherited(self, repository):
        content_list = repository.get_content_type_descriptors()["ContentList"]
        keys = content_list.attribute_descriptors.keys()

        assert "ContentItems" in keys
        assert "MetaTitle" in keys
        assert "Title" in keys

    def test_is_type_of(self, repository):
        content_list = repository.get_content_type_descriptors()["ContentList"]
        assert content_list.is_type_of("Page")
        assert not content_list.is_type_of("ContentItem")

    def test_permitted_content_types_refresh_on_save(self, repository):
        content_types = repository.get_content_type_descriptors()
        page = content_types["Page"]
        content_item = content_types["ContentItem"]
        assert page.permitted_content_types == []

        page.relationships.set_topic("ContentTypes", content_item)
        assert page.permitted_content_types == []

        repository.save(page)
        assert page.permitted_content_types == [content_item]

    def test_disable_child_topics(self, repository):
        page = repository.get_content_type_descriptors()["Page"]
        assert page.disable_child_topics is False

        page.attributes.set_boolean("DisableChildTopics", True)
        assert page.disable_child_topics is True

    def test_attribute_descriptor_settings(self, repository):
        descriptor = repository.get_content_type_descriptors()["Page"].get_attribute_descriptor("MetaTitle")
        assert descriptor.is_required is False
        assert descriptor.default_value is None

        descriptor.attributes.set_boolean("IsRequired", True)
        descriptor.attributes.set_value("DefaultValue", "Untitled")

        assert descriptor.is_required is True
        assert descriptor.default_value == "Untitled"

    def test_empty_repository_has_no_content_types(self):
        from topicgraph.repositories import MemoryTopicRepository

        assert len(MemoryTopicRepository().get_content_type_descriptors()) == 0


class TestSave:
    """Tests for TopicRepositoryBase.save."""

    def test_save_assigns_id_and_cleans(self, repository, web):
        from topicgraph.factory import TopicFactory

        topic = TopicFactory.create("Careers", "Page", web)
        topic.title = "Careers"

        topic_id = repository.save(topic)

        assert topic_id == topic.id
        assert not topic.is_new
        assert not topic.is_dirty(check_collections=True)
        assert len(topic.version_history) == 1
        assert topic.attributes.get_value("ParentId") == str(web.id)

    def test_ids_continue_after_existing_ones(self, repository, graph, web):
        from topicgraph.factory import TopicFactory
        from topicgraph.querying import find_all

        highest = max(topic.id for topic in find_all(graph))
        topic = TopicFactory.create("Careers", "Page", web)
        repository.save(topic)

        assert topic.id == highest + 1

    def test_save_recursive(self, repository, web):
        from topicgraph.factory import TopicFactory

        parent = TopicFactory.create("Blog", "Page", web)
        first = TopicFactory.create("First", "Page", parent)
        second = TopicFactory.create("Second", "Page", parent)

        repository.save(parent, is_recursive=True)

        assert not any(topic.is_new for topic in (parent, first, second))
        assert first.attributes.get_value("ParentId") == str(parent.id)

    def test_save_defers_references_to_unsaved_siblings(self, repository, web):
        """A reference to a topic saved later in the same call is resolved in a second pass."""
        from topicgraph.factory import TopicFactory

        parent = TopicFactory.create("Blog", "Page", web)
        first = TopicFactory.create("First", "Page", parent)
        second = TopicFactory.create("Second", "Page", parent)
        first.relationships.set_topic("Related", second)
        first.references.set_topic("Author", second)

        repository.save(parent, is_recursive=True)

        assert not first.relationships.is_dirty()
        assert not first.references.is_dirty()
        assert len(first.version_history) == 1

    def test_save_with_unsaved_reference_outside_graph_fails(self, repository, web):
        from topicgraph.exceptions import ReferentialIntegrityError
        from topicgraph.factory import TopicFactory

        about = web.children["About"]
        about.relationships.set_topic("Related", TopicFactory.create("Orphan", "Page"))

        with pytest.raises(ReferentialIntegrityError):
            repository.save(about)

    def test_save_unknown_content_type_fails(self, repository, web):
        from topicgraph.exceptions import ReferentialIntegrityError
        from topicgraph.factory import TopicFactory

        topic = TopicFactory.create("Mystery", "Unknown", web)
        with pytest.raises(ReferentialIntegrityError, match="Unknown"):
            repository.save(topic)

    def test_save_publishes_renamed_event(self, repository, web):
        callback = Mock()
        repository.subscribe("topic.renamed", callback)

        about = web.children["About"]
        about.key = "Company"
        repository.save(about)

        event = callback.call_args[0][0]
        assert (event.original_key, event.key) == ("About", "Company")
        assert about.original_key is None

    def test_save_after_reparent_publishes_moved_event(self, repository, graph, web):
        callback = Mock()
        repository.subscribe("topic.moved", callback)

        jeremy = graph.children["Team"].children["Jeremy"]
        jeremy.parent = web
        repository.save(jeremy)

        event = callback.call_args[0][0]
        assert event.topic is jeremy
        assert event.target is web
        assert event.previous_parent is None
        assert not jeremy.attributes.is_dirty("ParentId")

    def test_saving_new_content_type_registers_it(self, repository, graph):
        from topicgraph.factory import TopicFactory

        content_types = graph.children["Configuration"].children["ContentTypes"]
        repository.get_content_type_descriptors()
        TopicFactory.create("Event", "ContentTypeDescriptor", content_types)

        repository.save(content_types.children["Event"])

        assert "Event" in repository.get_content_type_descriptors()

    def test_saving_attribute_descriptor_resets_content_type(self, repository, graph):
        from topicgraph.factory import TopicFactory

        page = repository.get_content_type_descriptors()["Page"]
        assert "Subtitle" not in page.attribute_descriptors

        descriptor = TopicFactory.create("Subtitle", "TextAttributeDescriptor", page.children["Attributes"])
        repository.save(descriptor)

        assert "Subtitle" in page.attribute_descriptors
        assert "Subtitle" in repository.get_content_type_descriptors()["ContentList"].attribute_descriptors

    def test_save_stores_associations(self, repository, graph, web):
        about = web.children["About"]

        repository.save(about)

        stored = repository.get_associations(about.id)
        assert stored["Related"] == {web.children["Contact"].id}
        assert stored["Author"] == {graph.children["Team"].children["Jeremy"].id}

    def test_partially_loaded_associations_keep_unmatched(self, repository, web):
        """Targets that were never loaded aren't deleted from storage."""
        about = web.children["About"]
        contact = web.children["Contact"]
        repository.save(about)
        repository.save_topic = Mock(wraps=repository.save_topic)

        about.relationships.remove_topic("Related", contact)
        about.relationships.is_fully_loaded = False
        repository.save(about)

        assert repository.save_topic.call_args[0][3] is False
        assert repository.get_associations(about.id)["Related"] == {contact.id}

        about.relationships.is_fully_loaded = True
        repository.save(about)

        assert repository.save_topic.call_args[0][3] is True
        assert not repository.get_associations(about.id).get("Related")


class TestMove:
    """Tests for TopicRepositoryBase.move."""

    def test_move_to_new_parent(self, repository, graph, web):
        callback = Mock()
        repository.subscribe("topic.moved", callback)
        jeremy = graph.children["Team"].children["Jeremy"]

        repository.move(jeremy, web, web.children["About"])

        assert web.children.keys() == ["About", "Jeremy", "Contact", "Products"]
        event = callback.call_args[0][0]
        assert event.previous_parent is graph.children["Team"]
        assert event.sibling is web.children["About"]

    def test_move_to_same_position_is_noop(self, repository, web):
        callback = Mock()
        repository.subscribe("topic.moved", callback)

        repository.move(web.children["Contact"], web, web.children["About"])

        callback.assert_not_called()

    def test_move_relative_to_self_fails(self, repository, web):
        about = web.children["About"]
        with pytest.raises(ValueError):
            repository.move(about, about)
        with pytest.raises(ValueError):
            repository.move(about, web, about)

    def test_move_under_descendant_fails(self, repository, graph, web):
        from topicgraph.exceptions import CyclicParentingError

        with pytest.raises(CyclicParentingError):
            repository.move(web, web.children["Products"])

    def test_moved_event_precedes_graph_change(self, repository, graph, web):
        """Subscribers see the topic under its previous parent."""
        team = graph.children["Team"]
        jeremy = team.children["Jeremy"]
        seen = []
        repository.subscribe("topic.moved", lambda event: seen.append((event.topic.parent, event.topic.get_unique_key())))

        repository.move(jeremy, web)

        assert seen == [(team, "Root:Team:Jeremy")]
        assert jeremy.parent is web

    def test_invalid_move_publishes_nothing(self, repository, graph, web):
        from topicgraph.exceptions import CyclicParentingError

        callback = Mock()
        repository.subscribe("topic.moved", callback)
        jeremy = graph.children["Team"].children["Jeremy"]

        with pytest.raises(ValueError):
            repository.move(jeremy, web, graph.children["Team"])
        with pytest.raises(CyclicParentingError):
            repository.move(web, web.children["Products"])

        callback.assert_not_called()
        assert jeremy.parent is graph.children["Team"]


class TestDelete:
    """Tests for TopicRepositoryBase.delete."""

    def test_delete_leaf(self, repository, web):
        callback = Mock()
        repository.subscribe("topic.deleted", callback)
        contact = web.children["Contact"]
        about = web.children["About"]

        repository.delete(contact)

        assert "Contact" not in web.children
        assert about.relationships.get_topics("Related") == []
        assert callback.call_args[0][0].unique_key == "Root:Web:Contact"

    def test_deleted_event_precedes_detach(self, repository, web):
        """Subscribers still see the topic under its parent."""
        contact = web.children["Contact"]
        seen = []
        repository.subscribe("topic.deleted", lambda event: seen.append((event.topic.parent, "Contact" in web.children)))

        repository.delete(contact)

        assert seen == [(web, True)]
        assert contact.parent is None

    def test_delete_with_children_requires_recursive(self, repository, graph):
        from topicgraph.exceptions import ReferentialIntegrityError

        with pytest.raises(ReferentialIntegrityError):
            repository.delete(graph.children["Team"])

    def test_list_children_dont_require_recursive(self, repository, web):
        """Only List containers under the topic is fine without is_recursive."""
        products = web.children["Products"]
        repository.delete(products)
        assert "Products" not in web.children

    def test_delete_severs_references_into_subtree(self, repository, graph, web):
        about = web.children["About"]

        repository.delete(graph.children["Team"], is_recursive=True)

        assert about.references.get_topic("Author") is None
        assert "Team" not in graph.children

    def test_delete_base_topic_fails(self, repository, graph, web):
        from topicgraph.exceptions import ReferentialIntegrityError

        web.children["About"].base_topic = graph.children["Team"].children["Jeremy"]

        with pytest.raises(ReferentialIntegrityError, match="derives from"):
            repository.delete(graph.children["Team"], is_recursive=True)
        assert "Team" in graph.children

    def test_deleting_attribute_descriptor_resets_content_type(self, repository):
        page = repository.get_content_type_descriptors()["Page"]
        assert "Body" in page.attribute_descriptors

        repository.delete(page.children["Attributes"].children["Body"])

        assert "Body" not in page.attribute_descriptors


class TestRollback:
    """Tests for TopicRepositoryBase.rollback."""

    def test_rollback_restores_attributes(self, repository, web):
        about = web.children["About"]
        about.title = "First"
        repository.save(about)
        first_version = about.version_history[0]

        about.title = "Second"
        about.attributes.set_value("Body", "Added later")
        repository.save(about)

        repository.rollback(about, first_version)

        assert about.title == "First"
        assert about.attributes.get_value("Body") is None
        assert about.key == "About"
        assert len(about.version_history) == 3

    def test_rollback_unknown_version_fails(self, repository, web):
        from datetime import datetime

        with pytest.raises(ValueError):
            repository.rollback(web.children["About"], datetime(2000, 1, 1))

    def test_rollback_without_snapshot_fails(self, repository, web):
        from datetime import datetime
        from topicgraph.exceptions import TopicNotFoundError

        about = web.children["About"]
        version = datetime(2000, 1, 1)
        about.version_history.append(version)

        with pytest.raises(TopicNotFoundError):
            repository.rollback(about, version)


class TestStorageHelpers:
    """Tests for get_attributes and get_unmatched_attributes."""

    def test_get_attributes_filters_dirty(self, repository, web):
        about = web.children["About"]
        about.attributes.set_value("Body", "Hello")

        dirty = [record.key for record in repository.get_attributes(about, is_dirty=True)]
        clean = [record.key for record in repository.get_attributes(about, is_dirty=False)]

        assert dirty == ["Body"]
        assert "Title" in clean

    def test_moved_storage_location_counts_as_dirty(self, repository, web):
        """A clean record stored in the wrong place is selected as dirty."""
        from topicgraph.records import AttributeRecord

        about = web.children["About"]
        about.attributes.remove("Title")
        about.attributes.add(AttributeRecord(key="Title", value="About Us", is_dirty=False, is_extended_attribute=True))

        dirty = [record.key for record in repository.get_attributes(about, is_dirty=True)]

        assert dirty == ["Title"]

    def test_get_attributes_extended(self, repository, web):
        about = web.children["About"]
        about.attributes.set_value("Notes", "x" * 300)

        extended = [record.key for record in repository.get_attributes(about, is_extended=True)]

        assert extended == ["Notes"]

    def test_get_unmatched_attributes(self, repository, web):
        about = web.children["About"]
        about.attributes.set_value("MetaTitle", None)

        unmatched = [descriptor.key for descriptor in repository.get_unmatched_attributes(about)]

        assert "Body" in unmatched
        assert "MetaTitle" in unmatched
        assert "Related" not in unmatched
        assert "Title" not in unmatched

    def test_unknown_content_type(self, repository, web):
        from topicgraph.exceptions import ReferentialIntegrityError
        from topicgraph.factory import TopicFactory

        topic = TopicFactory.create("Mystery", "Unknown", web)
        with pytest.raises(ReferentialIntegrityError):
            repository.get_attributes(topic)
