"""Meeting module -- model, schemas, repository, read models, and service.

Provides the MeetingModel table, Pydantic schemas for writes and the two
read shapes (list rows and the detail view), MeetingRepository for async
persistence and reference lookups, and MeetingService with the create,
list, get_one, soft_delete, and soft_delete_many operations.
"""
