"""
Unit tests for SubmissionPayload and to_wire().

覆盖：
1. 可选列表为空时不出现在 body 里
2. flag 只在 True 时发送，且使用服务端字段名
3. fresh() 清空三个 flag
4. with_overrides() 按 issues 打开对应 flag，其余字段不变
"""
from careplan_client.outcomes import ConfirmationIssues
from careplan_client.payload import to_wire
from tests.conftest import SubmissionPayloadFactory, confirmation_body


class TestToWire:

    def test_required_fields(self):
        payload = SubmissionPayloadFactory(mrn='123456', provider_npi='1234567890')
        body = to_wire(payload)

        assert body == {
            'first_name': 'Alice',
            'last_name': 'Wang',
            'referring_provider': 'Dr. Smith',
            'provider_npi': '1234567890',
            'mrn': '123456',
            'primary_diagnosis': 'L40.0',
            'medication_name': 'Humira',
            'records_text': 'Patient presents with plaque psoriasis.',
        }

    def test_empty_lists_omitted(self):
        body = to_wire(SubmissionPayloadFactory(additional_diagnoses=[], medication_history=[]))
        assert 'additional_diagnoses' not in body
        assert 'medication_history' not in body

    def test_blank_list_entries_dropped(self):
        body = to_wire(SubmissionPayloadFactory(additional_diagnoses=['', '  ']))
        assert 'additional_diagnoses' not in body

    def test_lists_sent_when_present(self):
        body = to_wire(SubmissionPayloadFactory(
            additional_diagnoses=['I10', 'E11.9'],
            medication_history=['Methotrexate 2019-2021'],
        ))
        assert body['additional_diagnoses'] == ['I10', 'E11.9']
        assert body['medication_history'] == ['Methotrexate 2019-2021']

    def test_false_flags_not_sent(self):
        body = to_wire(SubmissionPayloadFactory())
        assert not any(key.startswith('confirm_') for key in body)

    def test_true_flags_use_server_names(self):
        body = to_wire(SubmissionPayloadFactory(
            confirm_patient_mismatch=True,
            confirm_provider_mismatch=True,
            confirm_duplicate_order=True,
        ))
        assert body['confirm_patient_name_mismatch'] is True
        assert body['confirm_provider_name_mismatch'] is True
        assert body['confirm_duplicate_order'] is True


class TestFresh:

    def test_clears_all_flags(self):
        payload = SubmissionPayloadFactory(
            confirm_patient_mismatch=True,
            confirm_provider_mismatch=True,
            confirm_duplicate_order=True,
        )
        fresh = payload.fresh()
        assert fresh.overrides == (False, False, False)
        assert fresh.mrn == payload.mrn

    def test_default_payload_has_no_flags(self):
        assert SubmissionPayloadFactory().overrides == (False, False, False)


class TestWithOverrides:

    def test_patient_and_order_issues(self):
        payload = SubmissionPayloadFactory(additional_diagnoses=['I10'])
        issues = ConfirmationIssues.from_body(confirmation_body(patient=True, order=True)['issues'])

        resubmission = payload.with_overrides(issues)

        assert resubmission.confirm_patient_mismatch is True
        assert resubmission.confirm_duplicate_order is True
        assert resubmission.confirm_provider_mismatch is False
        # 非 flag 字段完全一致
        assert resubmission.fresh() == payload.fresh()

    def test_provider_issue_only(self):
        issues = ConfirmationIssues.from_body(confirmation_body(provider=True)['issues'])
        resubmission = SubmissionPayloadFactory().with_overrides(issues)
        assert resubmission.overrides == (False, True, False)

    def test_keeps_flags_confirmed_earlier(self):
        payload = SubmissionPayloadFactory(confirm_patient_mismatch=True)
        issues = ConfirmationIssues.from_body(confirmation_body(order=True)['issues'])

        resubmission = payload.with_overrides(issues)

        assert resubmission.overrides == (True, False, True)

    def test_original_not_mutated(self):
        payload = SubmissionPayloadFactory()
        issues = ConfirmationIssues.from_body(confirmation_body(patient=True)['issues'])
        payload.with_overrides(issues)
        assert payload.overrides == (False, False, False)
