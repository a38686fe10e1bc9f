import pytest

from backend.src.models.comment import CommentCreate
from backend.src.models.note import NoteCreate
from backend.src.models.post import PostUpdate
from backend.src.services.comments import CommentNotFoundError
from backend.src.services.errors import ServiceError
from backend.src.services.posts import PostNotFoundError


@pytest.fixture
def post(note_service, post_service):
    note = note_service.create_note("alice", NoteCreate(title="Hello World", content="body"))
    return post_service.publish_note("alice", note.id)


def _comment(comment_service, post_id, content, author="Reader", user_id=None, parent_id=None):
    return comment_service.create_comment(
        post_id,
        CommentCreate(content=content, author_name=author, parent_id=parent_id),
        user_id=user_id,
    )


def test_create_comment_trims_fields_and_hides_email(comment_service, post):
    comment = comment_service.create_comment(
        post.id,
        CommentCreate(
            content="  Nice post  ",
            author_name=" Dana ",
            author_email="dana@example.com",
            author_url="   ",
        ),
    )

    assert comment.content == "Nice post"
    assert comment.author_name == "Dana"
    assert comment.author_url is None
    assert comment.user_id is None
    assert comment.approved is True
    assert "author_email" not in comment.model_dump()


def test_blank_content_or_author_is_rejected(comment_service, post):
    with pytest.raises(ServiceError) as excinfo:
        _comment(comment_service, post.id, "   ")
    assert excinfo.value.error == "invalid_comment"

    with pytest.raises(ServiceError):
        _comment(comment_service, post.id, "Hi", author="  ")


def test_comments_require_a_published_post(comment_service, post_service, post):
    with pytest.raises(PostNotFoundError):
        _comment(comment_service, "missing", "Hi")

    post_service.update_post("alice", post.id, PostUpdate(published=False))

    with pytest.raises(PostNotFoundError):
        _comment(comment_service, post.id, "Hi")
    with pytest.raises(PostNotFoundError):
        comment_service.list_post_comments(post.id)


def test_reply_parent_must_belong_to_same_post(
    comment_service, note_service, post_service, post
):
    other_note = note_service.create_note("alice", NoteCreate(title="Other", content="x"))
    other = post_service.publish_note("alice", other_note.id)
    foreign = _comment(comment_service, other.id, "Elsewhere")

    with pytest.raises(ServiceError) as excinfo:
        _comment(comment_service, post.id, "Reply", parent_id=foreign.id)

    assert excinfo.value.error == "invalid_parent"


def test_comments_are_threaded(comment_service, post):
    first = _comment(comment_service, post.id, "First")
    second = _comment(comment_service, post.id, "Second")
    reply_a = _comment(comment_service, post.id, "Reply A", parent_id=first.id)
    reply_b = _comment(comment_service, post.id, "Reply B", parent_id=first.id)
    nested = _comment(comment_service, post.id, "Nested", parent_id=reply_a.id)

    threads = comment_service.list_post_comments(post.id)

    assert [c.id for c in threads] == [second.id, first.id]
    assert [c.id for c in threads[1].replies] == [reply_a.id, reply_b.id]
    assert [c.id for c in threads[1].replies[0].replies] == [nested.id]
    assert threads[0].replies == []


def test_comment_count_is_reported_on_post(comment_service, post_service, post):
    first = _comment(comment_service, post.id, "First")
    _comment(comment_service, post.id, "Reply", parent_id=first.id)

    assert post_service.get_post_by_slug(post.slug).comments_count == 2


def test_delete_allowed_for_comment_author_and_post_owner(comment_service, post):
    by_carol = _comment(comment_service, post.id, "Mine", user_id="carol")
    anonymous = _comment(comment_service, post.id, "Anonymous")

    with pytest.raises(CommentNotFoundError):
        comment_service.delete_comment("mallory", by_carol.id)
    with pytest.raises(CommentNotFoundError):
        comment_service.delete_comment("carol", anonymous.id)

    comment_service.delete_comment("carol", by_carol.id)
    comment_service.delete_comment("alice", anonymous.id)

    assert comment_service.list_post_comments(post.id) == []


def test_deleting_comment_removes_its_replies(comment_service, post):
    parent = _comment(comment_service, post.id, "Parent")
    _comment(comment_service, post.id, "Reply", parent_id=parent.id)

    comment_service.delete_comment("alice", parent.id)

    assert comment_service.list_post_comments(post.id) == []


def test_deleting_post_deletes_its_comments(comment_service, post_service, db_service, post):
    _comment(comment_service, post.id, "Bye")

    post_service.delete_post("alice", post.id)

    conn = db_service.connect()
    try:
        remaining = conn.execute("SELECT COUNT(*) FROM comments").fetchone()[0]
    finally:
        conn.close()
    assert remaining == 0
