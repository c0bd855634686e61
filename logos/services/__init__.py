# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for one part of the blog:
#
#   post_service     post write coordinator (slug and tags, atomic) plus reads
#   tag_service      tag identity, tag set reconciliation, tag CRUD
#   comment_service  pending comments on published posts, moderation
#   link_service     blogroll CRUD
#   search_service   substring search over posts
#   feed_service     RSS rendering
#
# All service functions accept an AsyncSession as their first argument so
# that the router layer controls the outer transaction via ``get_db``.
# Multi-statement writes run inside ``database.atomic`` (a SAVEPOINT) and
# raise the errors defined in ``logos.errors``.
