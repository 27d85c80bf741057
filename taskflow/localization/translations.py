"""Translation bundles for user-visible messages."""
from typing import Dict

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "errors.resource_not_found": "Resource not found",
        "errors.not_authenticated": "Not authenticated",
        "errors.permission_denied": "You do not have permission to perform this action",
        "errors.validation_error": "Validation error",
        "errors.database_error": "The request could not be completed. Please try again later.",
        "errors.task_not_found": "Task {task_id} not found",
        "errors.user_not_found": "User {user_id} not found",
        "errors.actor_missing": "Actor identity header is missing",
        "errors.actor_unknown": "Actor is unknown or inactive",
        "errors.illegal_transition": "Cannot move task from '{current}' to '{requested}'",
        "errors.requires_admin": "Only administrators can {action} tasks",
        "errors.requires_assigner": "Only the submitter of this task can {action} it",
        "errors.requires_assignee": "Only the assignee of this task can {action} it",
        "errors.unsortable_field": "Cannot sort by '{field}'. Allowed fields: {allowed}",
        "errors.invalid_sort_order": "Sort order must be 'asc' or 'desc'",
        "errors.invalid_page": "Page must be at least 1 and limit between 1 and {limit}",
        "errors.invalid_enum_value": "'{value}' is not a valid {field}",
        "errors.progress_out_of_range": "Progress must be between 0 and 100",
        "errors.unknown_update_field": "Field(s) cannot be updated: {fields}",
        "errors.approval_needs_assignee": "Approving a task requires an assignee; use the approve operation",
        "errors.revision_comment_required": "A comment is required when requesting revisions",
        "errors.bulk_too_many": "At most {limit} tasks can be processed at once",
        "errors.bulk_unknown_action": "Unknown bulk action '{action}'",
        "errors.locale_not_supported": "Locale '{requested_locale}' is not supported",
        "errors.manager_email_missing": "No manager email for assigner {assigner_id}",
    },
    "ru": {
        "errors.resource_not_found": "Ресурс не найден",
        "errors.not_authenticated": "Не выполнен вход",
        "errors.permission_denied": "Недостаточно прав для выполнения действия",
        "errors.validation_error": "Ошибка валидации",
        "errors.database_error": "Не удалось выполнить запрос. Повторите попытку позже.",
        "errors.task_not_found": "Задача {task_id} не найдена",
        "errors.user_not_found": "Пользователь {user_id} не найден",
        "errors.actor_missing": "Не передан идентификатор пользователя",
        "errors.actor_unknown": "Пользователь не найден или неактивен",
        "errors.illegal_transition": "Нельзя перевести задачу из '{current}' в '{requested}'",
        "errors.requires_admin": "Только администратор может выполнить действие «{action}»",
        "errors.requires_assigner": "Только автор задачи может выполнить действие «{action}»",
        "errors.requires_assignee": "Только исполнитель задачи может выполнить действие «{action}»",
        "errors.unsortable_field": "Сортировка по '{field}' недоступна. Допустимые поля: {allowed}",
        "errors.invalid_sort_order": "Порядок сортировки должен быть 'asc' или 'desc'",
        "errors.invalid_page": "Номер страницы должен быть не меньше 1, а размер страницы от 1 до {limit}",
        "errors.invalid_enum_value": "Недопустимое значение '{value}' для поля {field}",
        "errors.progress_out_of_range": "Прогресс должен быть от 0 до 100",
        "errors.unknown_update_field": "Поля нельзя изменить: {fields}",
        "errors.approval_needs_assignee": "Для утверждения задачи нужен исполнитель",
        "errors.revision_comment_required": "Для запроса доработки нужен комментарий",
        "errors.bulk_too_many": "За один раз можно обработать не более {limit} задач",
        "errors.bulk_unknown_action": "Неизвестное массовое действие '{action}'",
        "errors.locale_not_supported": "Язык '{requested_locale}' не поддерживается",
        "errors.manager_email_missing": "Не найден email руководителя {assigner_id}",
    },
}


def get_available_locales() -> Dict[str, str]:
    """Return supported locale codes with their display names."""
    return {"en": "English", "ru": "Русский"}
