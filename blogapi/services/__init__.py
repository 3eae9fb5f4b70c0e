# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   user_service      signup, login and profile edits for User
#   blog_service      listing, search, detail, create and delete for Blog
#   comment_service   append-only comments on a Blog
#   like_service      the like toggle and like counts
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``blogapi.errors``
# exceptions and rendered by the app's exception handlers.
