# apps/notifications/views.py

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from apps.core.permissions import api_login_required

from .inbox import inbox


@api_login_required
@require_GET
def list_notifications(request):
    """
    Notificações do usuário logado, mais recentes primeiro
    ?unread=1 filtra apenas as não lidas
    """
    unread_only = request.GET.get('unread') in ('1', 'true')
    notifications = inbox.list_for_user(request.user, unread_only=unread_only)

    return JsonResponse({
        'notifications': [notification.to_dict() for notification in notifications],
        'unread': inbox.unread_count(request.user),
    })


@api_login_required
@require_http_methods(['PATCH'])
@csrf_exempt
def mark_notification_read(request, notification_id):
    notification = inbox.mark_read(request.user, notification_id)
    return JsonResponse({'message': 'Notification marked as read', 'notification': notification.to_dict()})


@api_login_required
@require_http_methods(['DELETE'])
@csrf_exempt
def delete_notification(request, notification_id):
    inbox.delete(request.user, notification_id)
    return JsonResponse({'message': 'Notification deleted'})
