"""
Domain errors.

Every error carries the HTTP status it is reported with and a numeric code
clients can match on. Services raise them, the exception handler registered in
main renders them as ``{"code": ..., "message": ...}``.
"""

from fastapi import status


class TodoError(Exception):
    http_status: int = status.HTTP_400_BAD_REQUEST
    code: int = 0
    message: str = "An error occurred."

    def __init__(self, message: str | None = None, **context):
        self.context = context
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code}, context={self.context})"


# Generic


class ErrGenericForbidden(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 2
    message = "You're not allowed to do this."


class ErrInvalidToken(TodoError):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = 3
    message = "Invalid or expired token."


# Users


class ErrUsernameExists(TodoError):
    code = 1001
    message = "A user with this username already exists."


class ErrUserEmailExists(TodoError):
    code = 1002
    message = "A user with this email address already exists."


class ErrNoUsernamePassword(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1004
    message = "Please specify a username and a password."


class ErrUserDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 1005
    message = "The user does not exist."


class ErrNoPasswordResetToken(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1008
    message = "No token provided."


class ErrInvalidPasswordResetToken(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1009
    message = "Invalid password reset token."


class ErrInvalidEmailConfirmToken(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1010
    message = "Invalid email confirm token."


class ErrWrongUsernameOrPassword(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1011
    message = "Wrong username or password."


class ErrEmailNotConfirmed(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1012
    message = "Please confirm your email address."


class ErrEmptyNewPassword(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 1013
    message = "Please specify new password."


class ErrRegistrationDisabled(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 1014
    message = "Registration is disabled."


# Lists


class ErrListDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 3001
    message = "This list does not exist."


class ErrListTitleCannotBeEmpty(TodoError):
    code = 3005
    message = "You must provide at least a list title."


class ErrListShareDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 3006
    message = "The list share does not exist."


class ErrListIdentifierIsNotUnique(TodoError):
    code = 3007
    message = "A list with this identifier already exists."


class ErrListIsArchived(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 3008
    message = "This list is archived. Editing or creating new tasks is not possible."


# Tasks


class ErrTaskCannotBeEmpty(TodoError):
    code = 4001
    message = "You must provide at least a task title."


class ErrTaskDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 4002
    message = "This task does not exist."


class ErrInvalidTaskField(TodoError):
    code = 4016
    message = "The task field is invalid."


class ErrInvalidTaskFilterComparator(TodoError):
    code = 4017
    message = "The task filter comparator is invalid."


class ErrInvalidTaskFilterConcatinator(TodoError):
    code = 4018
    message = "The task filter concatinator is invalid."


class ErrInvalidTaskFilterValue(TodoError):
    code = 4019
    message = "The task filter value is invalid."


class ErrInvalidSortParam(TodoError):
    code = 4020
    message = "The task sort param is invalid."


class ErrInvalidSortOrder(TodoError):
    code = 4021
    message = "The task sort order is invalid."


class ErrUserAlreadyAssigned(TodoError):
    code = 4022
    message = "This user is already assigned to that task."


# Namespaces


class ErrNamespaceDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 5001
    message = "Namespace not found."


class ErrNamespaceNameCannotBeEmpty(TodoError):
    code = 5006
    message = "The namespace name cannot be empty."


class ErrTeamDoesNotHaveAccessToNamespace(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 5011
    message = "This team does not have access to the namespace."


class ErrUserDoesNotHaveAccessToNamespace(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 5012
    message = "This user does not have access to the namespace."


class ErrTeamAlreadyHasNamespaceAccess(TodoError):
    code = 5013
    message = "This team already has access to this namespace."


class ErrUserAlreadyHasNamespaceAccess(TodoError):
    code = 5014
    message = "This user already has access to this namespace."


class ErrNamespaceIsArchived(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 5017
    message = "The namespaces is archived and can therefore only be accessed read only."


# Teams


class ErrTeamNameCannotBeEmpty(TodoError):
    code = 6001
    message = "The team name cannot be empty."


class ErrTeamDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 6002
    message = "The team does not exist."


class ErrTeamAlreadyHasAccess(TodoError):
    code = 6004
    message = "This team already has access."


class ErrUserIsMemberOfTeam(TodoError):
    code = 6005
    message = "This user is already a member of that team."


class ErrUserIsNotMemberOfTeam(ErrUserDoesNotExist):
    message = "This user is not a member of that team."


class ErrCannotDeleteLastTeamMember(TodoError):
    code = 6006
    message = "You cannot delete the last member of a team."


class ErrTeamDoesNotHaveAccessToList(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 6007
    message = "This team does not have access to the list."


# Rights


class ErrInvalidRight(TodoError):
    code = 7001
    message = "The right is invalid."


# List user shares


class ErrUserAlreadyHasAccess(TodoError):
    code = 8001
    message = "This user already has access to this list."


class ErrUserDoesNotHaveAccessToList(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 8002
    message = "This user does not have access to the list."


# Buckets


class ErrBucketDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 10001
    message = "This bucket does not exist."


class ErrBucketDoesNotBelongToList(TodoError):
    code = 10002
    message = "This bucket does not belong to that list."


class ErrCannotRemoveLastBucket(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 10003
    message = "You cannot remove the last bucket on this list."


# Saved filters


class ErrSavedFilterDoesNotExist(TodoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = 11001
    message = "The saved filter does not exist."


class ErrSavedFilterNotAvailableForLinkShare(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 11002
    message = "Saved filters are not available for link shares."


# Link shares


class ErrLinkSharePasswordRequired(TodoError):
    http_status = status.HTTP_412_PRECONDITION_FAILED
    code = 13001
    message = "This link share requires a password for authentication, but none was provided."


class ErrLinkSharePasswordInvalid(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 13002
    message = "The provided link share password is invalid."


class ErrInvalidSharingType(TodoError):
    code = 13003
    message = "The sharing type is invalid."


class ErrLinkSharingDisabled(TodoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = 13004
    message = "Link sharing is disabled on this instance."
