from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.core.paginator import Paginator
from django.utils import timezone
from .exceptions import LedgerError
from .filters import JobSheetFilter, PaymentFilter
from .models import JobSheet, Payment
from .serializers import (
    JobSheetSerializer, JobSheetDetailSerializer, JobSheetCreateSerializer, JobSheetUpdateSerializer,
    StatusChangeSerializer, StatusHistorySerializer, PaymentSerializer, PaymentCreateSerializer,
)
from .services import JobSheetService, PaymentService


def error_response(exc):
    return Response(exc.as_response_data(), status=exc.status_code)


def _int_param(request, name, default):
    try:
        value = int(request.query_params.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def paginated_response(request, queryset, serializer_class, context=None):
    page = _int_param(request, 'page', 1)
    limit = _int_param(request, 'limit', getattr(settings, 'JOBSHEET_PAGE_SIZE', 50))

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def job_sheet_queryset():
    return JobSheet.objects.select_related('customer', 'device', 'location', 'assigned_to')


def payment_result_data(result):
    job_sheet = result.job_sheet
    data = {
        'payment': PaymentSerializer(result.payment).data,
        'job_sheet': {
            'id': job_sheet.id,
            'job_number': job_sheet.job_number,
            'total_amount': str(job_sheet.total_amount),
            'paid_amount': str(job_sheet.paid_amount),
            'balance_amount': str(job_sheet.balance_amount),
        },
        'overpayment': result.overpayment,
    }
    if result.overpayment:
        data['warning'] = (
            f'Payments ({job_sheet.paid_amount}) exceed the job sheet total ({job_sheet.total_amount}).'
        )
    return data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def jobsheet_list_create(request):
    """List job sheets with filters and pagination, or open a new job sheet"""
    if request.method == 'GET':
        filterset = JobSheetFilter(request.query_params, queryset=job_sheet_queryset().order_by('-created_at'))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        context = {'today': timezone.localdate()}
        return paginated_response(request, filterset.qs, JobSheetSerializer, context)

    serializer = JobSheetCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        job_sheet = JobSheetService.create_job_sheet(
            created_by=request.user,
            request=request,
            **serializer.validated_data
        )
    except LedgerError as e:
        return error_response(e)
    return Response(JobSheetDetailSerializer(job_sheet).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def jobsheet_detail(request, pk):
    """Retrieve, update or delete a job sheet"""
    try:
        if request.method == 'GET':
            job_sheet = JobSheetService.get_job_sheet(pk)
            return Response(JobSheetDetailSerializer(job_sheet).data)

        if request.method == 'PATCH':
            serializer = JobSheetUpdateSerializer(data=request.data, partial=True)
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            changes = dict(serializer.validated_data)
            # Keys the serializer does not know (read-only or unknown) go to the service, which rejects them
            for field in request.data:
                if field not in serializer.fields:
                    changes[field] = request.data[field]
            job_sheet = JobSheetService.update_job_sheet(pk, changes, user=request.user, request=request)
            return Response(JobSheetDetailSerializer(job_sheet).data)

        JobSheetService.delete_job_sheet(pk, user=request.user, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)
    except LedgerError as e:
        return error_response(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def jobsheet_by_number(request, job_number):
    """Find a job sheet by its job number"""
    try:
        job_sheet = JobSheetService.get_by_number(job_number)
    except LedgerError as e:
        return error_response(e)
    return Response(JobSheetDetailSerializer(job_sheet).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jobsheet_change_status(request, pk):
    """Change job sheet status and record it in the status history"""
    serializer = StatusChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        job_sheet, history = JobSheetService.change_status(
            pk,
            serializer.validated_data['status'],
            remarks=serializer.validated_data['remarks'],
            user=request.user,
            request=request,
        )
    except LedgerError as e:
        return error_response(e)
    return Response({
        'job_sheet': JobSheetSerializer(job_sheet).data,
        'history': StatusHistorySerializer(history).data,
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def jobsheet_payments(request, pk):
    """List payments of a job sheet, or record a new one"""
    try:
        job_sheet = JobSheetService.get_job_sheet(pk)
        if request.method == 'GET':
            payments = job_sheet.payments.select_related('customer', 'created_by').order_by('created_at', 'id')
            return Response(PaymentSerializer(payments, many=True).data)

        serializer = PaymentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        result = PaymentService.record_payment(
            job_sheet.pk,
            data['amount'],
            data['payment_method'],
            reference=data['reference'],
            notes=data['notes'],
            customer=data.get('customer'),
            user=request.user,
            request=request,
        )
    except LedgerError as e:
        return error_response(e)
    return Response(payment_result_data(result), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def jobsheet_status_history(request, pk):
    """Status history of a job sheet, oldest first"""
    try:
        job_sheet = JobSheetService.get_job_sheet(pk)
    except LedgerError as e:
        return error_response(e)
    history = job_sheet.status_history.select_related('changed_by').all()
    return Response(StatusHistorySerializer(history, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def jobsheet_overdue(request):
    """Job sheets past their expected completion date, most overdue first"""
    today = timezone.localdate()
    queryset = job_sheet_queryset().overdue(today).order_by('expected_completion_date', 'id')
    location = request.query_params.get('location', None)
    if location:
        queryset = queryset.filter(location_id=location)
    return paginated_response(request, queryset, JobSheetSerializer, {'today': today})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def jobsheet_stats(request):
    """Job sheet statistics, optionally scoped by location and received date range"""
    filterset = JobSheetFilter(request.query_params, queryset=JobSheet.objects.all())
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(JobSheetService.get_stats(filterset.qs, timezone.localdate()))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_list_create(request):
    """List payments across job sheets, or record one with job_sheet in the body"""
    if request.method == 'GET':
        queryset = Payment.objects.select_related('job_sheet', 'customer', 'created_by').order_by('-created_at', '-id')
        filterset = PaymentFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, PaymentSerializer)

    serializer = PaymentCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    if 'job_sheet' not in data:
        return Response({'job_sheet': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
    try:
        result = PaymentService.record_payment(
            data['job_sheet'],
            data['amount'],
            data['payment_method'],
            reference=data['reference'],
            notes=data['notes'],
            customer=data.get('customer'),
            user=request.user,
            request=request,
        )
    except LedgerError as e:
        return error_response(e)
    return Response(payment_result_data(result), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk):
    """Retrieve a payment. Payments are immutable, so there is no update or delete."""
    try:
        payment = PaymentService.get_payment(pk)
    except LedgerError as e:
        return error_response(e)
    return Response(PaymentSerializer(payment).data)
