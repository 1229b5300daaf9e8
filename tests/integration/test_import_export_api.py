"""
Integration Tests for CSV Import/Export API
"""
import pytest

API = '/api/v1'


def csv_file(content: str, name: str = 'upload.csv'):
    return {'file': (name, content.encode('utf-8'), 'text/csv')}


class TestTemplates:

    @pytest.mark.asyncio
    async def test_student_template(self, client, admin, headers_for):
        response = await client.get(f'{API}/data/templates/students', headers=headers_for(admin))

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/csv')
        assert response.headers['content-disposition'] == 'attachment; filename=students_template.csv'
        assert response.text.splitlines()[0] == 'student_id,full_name,department_code,program'

    @pytest.mark.asyncio
    async def test_unknown_template(self, client, admin, headers_for):
        response = await client.get(f'{API}/data/templates/grades', headers=headers_for(admin))
        assert response.status_code == 400


class TestStudentImport:

    @pytest.mark.asyncio
    async def test_validate_classifies_rows(self, client, admin, department, make_student, headers_for):
        await make_student(department, student_id='UGR/20001/16')
        content = (
            'Student_ID,Full_Name,Department_Code,Program\n'
            'UGR/30001/16,Selam Worku,CSE,BSc\n'
            'UGR/20001/16,Existing Student,CSE,MSc\n'
            'UGR/30002/16,Lost Student,NOPE,BSc\n'
            'UGR/30003/16,,CSE,BSc\n'
        )

        response = await client.post(
            f'{API}/data/import/students/validate', files=csv_file(content), headers=headers_for(admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert (data['total_rows'], data['valid'], data['duplicates'], data['warnings'], data['errors']) == (4, 1, 1, 1, 1)
        assert [r['status'] for r in data['rows']] == ['valid', 'duplicate', 'warning', 'error']
        assert [r['row_number'] for r in data['rows']] == [2, 3, 4, 5]
        assert data['rows'][2]['message'] == 'Department "NOPE" not found'

    @pytest.mark.asyncio
    async def test_commit_refused_with_errors(self, client, admin, department, headers_for):
        content = 'student_id,full_name,department_code,program\nUGR/30003/16,,CSE,BSc\n'

        response = await client.post(
            f'{API}/data/import/students/commit', files=csv_file(content), headers=headers_for(admin)
        )

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'CSV_IMPORT_FAILED'

    @pytest.mark.asyncio
    async def test_commit_creates_updates_and_skips(self, client, admin, department, make_student, headers_for):
        await make_student(department, student_id='UGR/20001/16')
        content = (
            'student_id,full_name,department_code,program\n'
            'UGR/30001/16,Selam Worku,CSE,MSc\n'
            'ugr/20001/16,Renamed Student,CSE,BSc\n'
            'UGR/30002/16,Lost Student,NOPE,BSc\n'
        )
        headers = headers_for(admin)

        response = await client.post(f'{API}/data/import/students/commit', files=csv_file(content), headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert (data['created'], data['updated'], data['skipped'], data['errors']) == (1, 1, 1, 0)

        students = (await client.get(f'{API}/students', headers=headers)).json()['items']
        by_id = {s['student_id']: s for s in students}
        assert by_id['UGR/30001/16']['program'] == 'MSc'
        assert by_id['UGR/20001/16']['full_name'] == 'Renamed Student'
        assert 'UGR/30002/16' not in by_id

    @pytest.mark.asyncio
    async def test_avd_must_give_department(self, client, avd, department, headers_for):
        content = 'student_id,full_name,department_code,program\nUGR/40001/16,No Dept,,BSc\n'

        response = await client.post(
            f'{API}/data/import/students/validate', files=csv_file(content), headers=headers_for(avd)
        )

        assert response.json()['errors'] == 1

    @pytest.mark.asyncio
    async def test_avd_cannot_see_other_college_departments(
        self, client, avd, department, other_department, headers_for
    ):
        content = 'student_id,full_name,department_code,program\nUGR/40002/16,Elsewhere,MATH,BSc\n'

        response = await client.post(
            f'{API}/data/import/students/validate', files=csv_file(content), headers=headers_for(avd)
        )

        assert response.json()['rows'][0]['status'] == 'warning'

    @pytest.mark.asyncio
    async def test_deputy_cannot_import(self, client, deputy, headers_for):
        content = 'student_id,full_name,department_code,program\nUGR/40003/16,X,CSE,BSc\n'

        response = await client.post(
            f'{API}/data/import/students/validate', files=csv_file(content), headers=headers_for(deputy)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_columns(self, client, admin, headers_for):
        response = await client.post(
            f'{API}/data/import/students/validate',
            files=csv_file('student_id,full_name\nUGR/1/16,Name\n'),
            headers=headers_for(admin),
        )

        assert response.status_code == 400
        assert response.json()['error']['details']['missing_columns'] == ['department_code', 'program']

    @pytest.mark.asyncio
    async def test_not_utf8(self, client, admin, headers_for):
        response = await client.post(
            f'{API}/data/import/students/validate',
            files={'file': ('latin1.csv', 'student_id,full_name\nÄ,Ö\n'.encode('latin-1'), 'text/csv')},
            headers=headers_for(admin),
        )
        assert response.status_code == 400


class TestReferenceImport:

    @pytest.mark.asyncio
    async def test_colleges(self, client, admin, college, headers_for):
        content = 'code,name\nCBE,College of Business\ncee,College of Electrical and Computer Engineering\n'
        headers = headers_for(admin)

        response = await client.post(f'{API}/data/import/colleges/commit', files=csv_file(content), headers=headers)

        assert response.status_code == 200
        assert (response.json()['created'], response.json()['updated']) == (1, 1)
        colleges = (await client.get(f'{API}/colleges', headers=headers)).json()
        assert {c['code']: c['name'] for c in colleges} == {
            'CBE': 'College of Business',
            'CEE': 'College of Electrical and Computer Engineering',
        }

    @pytest.mark.asyncio
    async def test_departments(self, client, admin, college, headers_for):
        content = 'code,name,college_code\nsw,Software Engineering,CEE\nbio,Biology,NOPE\n'
        headers = headers_for(admin)

        response = await client.post(f'{API}/data/import/departments/commit', files=csv_file(content), headers=headers)

        data = response.json()
        assert (data['created'], data['skipped']) == (1, 1)
        departments = (await client.get(f'{API}/departments', headers=headers)).json()
        assert [(d['code'], d['college']['code']) for d in departments] == [('SW', 'CEE')]

    @pytest.mark.asyncio
    async def test_avd_cannot_import_colleges(self, client, avd, headers_for):
        response = await client.post(
            f'{API}/data/import/colleges/validate',
            files=csv_file('code,name\nCBE,College of Business\n'),
            headers=headers_for(avd),
        )
        assert response.status_code == 403


class TestExports:

    @pytest.mark.asyncio
    async def test_export_violations_scoped(
        self, client, deputy, student, make_student, make_violation, sibling_department, headers_for
    ):
        await make_violation(student, course_code='CSE4001')
        await make_violation(await make_student(sibling_department), course_code='ECE4001')

        response = await client.get(f'{API}/data/export/violations', headers=headers_for(deputy))

        assert response.status_code == 200
        assert 'filename=violations_report_' in response.headers['content-disposition']
        lines = response.text.splitlines()
        assert lines[0].startswith('student_id,student_name,department,program,incident_date')
        assert len(lines) == 2
        assert 'CSE4001' in lines[1]
        assert student.student_id in lines[1]

    @pytest.mark.asyncio
    async def test_export_students(self, client, head, student, headers_for):
        response = await client.get(f'{API}/data/export/students', headers=headers_for(head))

        lines = response.text.splitlines()
        assert lines[0] == 'student_id,full_name,department,department_code,program'
        assert lines[1].startswith(f'{student.student_id},')
        assert lines[1].endswith(',CSE,BSc')

    @pytest.mark.asyncio
    async def test_export_departments(self, client, avd, department, other_department, headers_for):
        response = await client.get(f'{API}/data/export/departments', headers=headers_for(avd))

        lines = response.text.splitlines()
        assert lines[0] == 'code,name,college_code,college'
        assert lines[1:] == ['CSE,Computer Science and Engineering,CEE,College of Electrical Engineering']

    @pytest.mark.asyncio
    async def test_export_colleges_admin_only(self, client, admin, deputy, college, headers_for):
        refused = await client.get(f'{API}/data/export/colleges', headers=headers_for(deputy))
        assert refused.status_code == 403

        response = await client.get(f'{API}/data/export/colleges', headers=headers_for(admin))
        assert response.text.splitlines() == ['code,name', 'CEE,College of Electrical Engineering']
