"""
API Gateway Integration Layer
REST endpoints for deadline computation, catalog and calendar lookups
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.exceptions import ConfigurationNotFound, DeadlineEngineError, InvalidRequest
from ..core.models import ProceduralCategory
from ..pipeline.main_pipeline import DeadlinePipeline, PipelineConfig, ProcessingResult

logger = logging.getLogger(__name__)

API_PREFIX = '/api/v1'

STATUS_BY_CODE = {cls.code: cls.status_code for cls in DeadlineEngineError.__subclasses__()}


class APIGatewayHandler:
    """
    Main handler for API Gateway integration
    Routes requests to the deadline pipeline
    """

    def __init__(self,
                 pipeline: Optional[DeadlinePipeline] = None,
                 results_table=None,
                 audit_table=None):
        """
        Initialize handler

        Args:
            pipeline: Deadline pipeline (built from environment if not provided)
            results_table: DynamoDB table for computed deadlines
            audit_table: DynamoDB table for the API audit trail
        """

        self.pipeline = pipeline or DeadlinePipeline(PipelineConfig.from_env())
        config = self.pipeline.config

        self.results_table = (
            results_table if results_table is not None
            else self._dynamodb_table(config.results_table, config.aws_region)
        )
        self.audit_table = (
            audit_table if audit_table is not None
            else self._dynamodb_table(config.audit_table, config.aws_region)
        )

    @staticmethod
    def _dynamodb_table(name: Optional[str], region: Optional[str]):
        if not name:
            return None
        try:
            return boto3.resource('dynamodb', region_name=region).Table(name)
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"DynamoDB table {name} unavailable: {e}")
            return None

    def lambda_handler(self, event: Dict, context) -> Dict:
        """
        Main Lambda handler for API Gateway events
        """

        try:
            path = event.get('path', '').rstrip('/')
            method = event.get('httpMethod', '')
            query = event.get('queryStringParameters') or {}

            try:
                body = json.loads(event['body']) if event.get('body') else {}
            except json.JSONDecodeError:
                return self._error_response(400, "Request body is not valid JSON")

            if not path.startswith(API_PREFIX):
                return self._error_response(404, "Endpoint not found")
            segments = path[len(API_PREFIX):].strip('/').split('/')

            # Route to appropriate handler
            if segments == ['deadlines', 'compute'] and method == 'POST':
                return self.compute_deadline(body)

            elif segments == ['deadlines', 'batch'] and method == 'POST':
                return self.compute_batch(body)

            elif segments == ['deadlines', 'validate'] and method == 'POST':
                return self.validate_request(body)

            elif len(segments) == 2 and segments[0] == 'deadlines' and method == 'GET':
                return self.get_deadline(segments[1])

            elif segments == ['catalog'] and method == 'GET':
                return self.list_catalog(query)

            elif len(segments) == 2 and segments[0] == 'catalog' and method == 'GET':
                return self.get_catalog_entry(segments[1])

            elif len(segments) == 3 and segments[0] == 'calendars' and method == 'GET':
                return self.get_calendar(segments[1], segments[2])

            else:
                return self._error_response(404, "Endpoint not found")

        except Exception as e:
            logger.error(f"Error processing request: {str(e)}")
            return self._error_response(500, "Internal server error")

    def compute_deadline(self, body: Dict) -> Dict:
        """
        Compute a deadline

        Expected body:
        {
            "deadline_type_or_catalog_code": "CPC-001",
            "trigger_date": "2026-12-07",
            "service_method": "POSTAL_SERVICE",
            "tribunal_code": "TJSP",
            "state_code": "SP",
            "parties": [{"pole": "RESPONDENT", "party_type": "FEDERAL_TREASURY", "counsel_id": "AGU"}],
            "system_unavailability": {"start": "2027-02-22", "end": "2027-02-22"},
            "embargos_pending": false
        }
        """

        outcome = self.pipeline.process(body, request_id=body.get('reference'))

        if outcome.status != "success":
            return self._engine_error_response(outcome.error)

        self._store_results(outcome)
        self._log_audit({
            'action': 'deadline_computed',
            'request_id': outcome.request_id,
            'catalog_code': outcome.result.catalog_code,
            'due_date': outcome.result.due_date.isoformat() if outcome.result.due_date else None,
        })

        return self._success_response(outcome.to_dict())

    def compute_batch(self, body: Dict) -> Dict:
        requests = body.get('requests')
        problem = self.pipeline.request_validator.validate_batch(requests)
        if problem:
            return self._error_response(400, problem)

        outcomes = self.pipeline.process_batch(requests)
        for outcome in outcomes:
            if outcome.status == "success":
                self._store_results(outcome)

        return self._success_response({
            'results': [o.to_dict() for o in outcomes],
            'computed': sum(1 for o in outcomes if o.status == "success"),
            'rejected': sum(1 for o in outcomes if o.status != "success"),
        })

    def validate_request(self, body: Dict) -> Dict:
        return self._success_response(self.pipeline.request_validator.validate_api_request(body))

    def get_deadline(self, request_id: str) -> Dict:
        """
        Retrieve a stored computation
        """

        if self.results_table is None:
            return self._error_response(503, "Result storage not configured")

        try:
            response = self.results_table.get_item(Key={'request_id': request_id})
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to read {request_id}: {e}")
            return self._error_response(502, "Result storage unavailable")

        item = response.get('Item')
        if not item:
            return self._error_response(404, f"Deadline {request_id} not found")

        return self._success_response(json.loads(item['payload']))

    def list_catalog(self, query: Dict) -> Dict:
        catalog = self.pipeline.snapshot.catalog
        entries = list(catalog)

        if query.get('category'):
            try:
                category = ProceduralCategory.parse(query['category'])
            except InvalidRequest as e:
                return self._engine_error_response(e.to_dict())
            entries = catalog.by_category(category)

        if query.get('q'):
            codes = {e.code for e in catalog.search(query['q'])}
            entries = [e for e in entries if e.code in codes]

        return self._success_response({
            'version': catalog.version,
            'entries': [e.to_dict() for e in entries],
        })

    def get_catalog_entry(self, key: str) -> Dict:
        try:
            entry = self.pipeline.snapshot.catalog.get(key)
        except ConfigurationNotFound as e:
            return self._engine_error_response(e.to_dict())
        return self._success_response(entry.to_dict())

    def get_calendar(self, tribunal_code: str, year: str) -> Dict:
        try:
            if not year.isdigit():
                raise InvalidRequest(f"Invalid year: {year!r}", {"field": "year"})
            calendar = self.pipeline.snapshot.calendars.get(tribunal_code, int(year))
        except DeadlineEngineError as e:
            return self._engine_error_response(e.to_dict())
        return self._success_response(calendar.to_dict())

    def _store_results(self, outcome: ProcessingResult):
        """
        Store computation results in DynamoDB (best-effort)
        """

        if self.results_table is None:
            return

        try:
            result = outcome.result
            item = {
                'request_id': outcome.request_id,
                'catalog_code': result.catalog_code,
                'tribunal_code': result.tribunal_code,
                'due_date': result.due_date.isoformat() if result.due_date else None,
                'status': 'open',
                'verified': bool(outcome.verification and outcome.verification.get('valid')),
                'snapshot_version': result.snapshot_version,
                'processing_time': Decimal(str(outcome.processing_time)),
                'payload': json.dumps(outcome.to_dict(), ensure_ascii=False),
                'created_at': datetime.now().isoformat(),
            }
            self.results_table.put_item(Item=item)
        except Exception as e:
            logger.error(f"Failed to store results for {outcome.request_id}: {e}")

    def _log_audit(self, entry: Dict):
        """
        Log action to audit trail (best-effort)
        """

        if self.audit_table is None:
            return

        entry['timestamp'] = datetime.now().isoformat()
        try:
            self.audit_table.put_item(Item=entry)
        except Exception as e:
            logger.error(f"Failed to write audit entry: {e}")

    def _engine_error_response(self, error: Dict) -> Dict:
        status = STATUS_BY_CODE.get(error.get('code'), 400)
        return self._error_response(status, error.get('message', 'Invalid request'), error)

    def _success_response(self, data: Dict) -> Dict:
        """
        Format successful API response
        """

        return {
            'statusCode': 200,
            'headers': {
                'Content-Type': 'application/json',
                'Access-Control-Allow-Origin': '*'
            },
            'body': json.dumps({
                'success': True,
                'data': data,
                'timestamp': datetime.now().isoformat()
            }, ensure_ascii=False)
        }

    def _error_response(self, status_code: int, message: str, details: Optional[Dict] = None) -> Dict:
        """
        Format error API response
        """

        payload = {
            'success': False,
            'error': message,
            'timestamp': datetime.now().isoformat()
        }
        if details:
            payload['details'] = details

        return {
            'statusCode': status_code,
            'headers': {
                'Content-Type': 'application/json',
                'Access-Control-Allow-Origin': '*'
            },
            'body': json.dumps(payload, ensure_ascii=False)
        }


_handler: Optional[APIGatewayHandler] = None


def lambda_handler(event: Dict, context) -> Dict:
    """Lambda entry point; the handler is built on the first invocation"""

    global _handler
    if _handler is None:
        _handler = APIGatewayHandler()
    return _handler.lambda_handler(event, context)
