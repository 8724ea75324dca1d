import copy
import csv
import io

import pytest

from registry.services.reports import (
    BabyEntry,
    LegacyEntry,
    get_month_dates,
    linelist_csv,
    monthly_summary,
    normalize_records,
    prepare_preview_data,
    process_raw_data,
    resolve_facility_name,
)


def test_empty_summary_shape():
    assert process_raw_data([]) == {
        'total': 0,
        'sex': {'female': 0, 'male': 0},
        'type': {'fresh': 0, 'macerated': 0},
        'place': {'home': 0, 'facility': 0},
    }
    assert process_raw_data(None)['total'] == 0


def test_sex_buckets_ignore_the_baby_sex_string():
    summary = process_raw_data([{'babies': [{'sex': 'Male', 'outcome': 'Fresh still-birth'}], 'type': 'fresh'}])
    assert summary['total'] == 1
    assert summary['type'] == {'fresh': 1, 'macerated': 0}
    assert summary['sex'] == {'female': 0, 'male': 0}


def test_legacy_numeric_sex_and_place_buckets():
    records = [
        {'female': 1, 'type': 'Macerated', 'place': 'home'},
        {'male': '2', 'outcome': 'fresh stillbirth', 'place': 'Health Facility'},
        {'female': 0, 'male': 'n/a', 'facility': 'Ward A'},
    ]
    summary = process_raw_data(records)
    assert summary['total'] == 3
    assert summary['sex'] == {'female': 1, 'male': 1}
    assert summary['type'] == {'fresh': 1, 'macerated': 1}
    assert summary['place'] == {'home': 1, 'facility': 2}


def test_place_home_is_exact_match():
    assert process_raw_data([{'place': 'Home'}])['place']['home'] == 0


def test_each_baby_is_one_entry():
    records = [
        {'babies': [{'outcome': 'Fresh still-birth'}, {'outcome': 'Macerated still-birth'}]},
        {'babies': []},
        {'type': 'fresh'},
    ]
    entries = normalize_records(records)
    assert [type(e) for e in entries] == [BabyEntry, BabyEntry, LegacyEntry, LegacyEntry]
    assert process_raw_data(records)['type'] == {'fresh': 2, 'macerated': 1}


def test_preview_row_from_nested_baby():
    rows = prepare_preview_data([{
        'babies': [{'sex': 'Female', 'outcome': 'Macerated still-birth', 'weight': '1800'}],
        'facility': 'Ward A',
        'dateOfNotification': '2025-09-11',
    }])
    assert rows == [{
        'sex': 'Female',
        'type': 'Macerated still-birth',
        'facility': 'Ward A',
        'date': '2025-09-11',
        'time': '',
        'weight': '1800',
        'motherAge': '',
        'gestationalAge': '',
        'deliveryPlace': '',
    }]


def test_preview_defaults_and_fallbacks():
    rows = prepare_preview_data([
        {
            'location': {'name': None, 'facilityName': 'Coast General'},
            'time': '14:05',
            'mother': {'age': 31, 'placeOfDelivery': 'Facility'},
            'babies': [{'birthWeight': 2100, 'gestationWeeks': 36.0, 'timeOfDeath': '03:10'}],
        },
        {'male': 1, 'date': '2025-01-02', 'motherAge': 19, 'place': 'home'},
        {},
    ])
    first, legacy, empty = rows
    assert first['facility'] == 'Coast General'
    assert first['sex'] == 'Unknown'
    assert first['type'] == 'Unknown'
    assert first['time'] == '03:10'
    assert first['weight'] == '2100'
    assert first['gestationalAge'] == '36'
    assert first['motherAge'] == '31'
    assert first['deliveryPlace'] == 'Facility'

    assert legacy['sex'] == 'Male'
    assert legacy['date'] == '2025-01-02'
    assert legacy['motherAge'] == '19'
    assert legacy['deliveryPlace'] == 'home'

    assert empty['facility'] == 'Unknown'
    assert empty['date'] == ''


def test_facility_name_resolution_order():
    assert resolve_facility_name({'facility': 'F', 'location': {'name': 'L'}}) == 'F'
    assert resolve_facility_name({'location': {'name': 'L', 'facilityName': 'LF'}}) == 'L'
    assert resolve_facility_name({'healthFacility': 'H', 'facilityName': 'N'}) == 'H'
    assert resolve_facility_name({'facilityName': 'N'}) == 'N'
    assert resolve_facility_name({'location': 'not-a-dict'}) == 'Unknown'


def test_aggregation_is_idempotent_and_does_not_mutate_input():
    records = [
        {'babies': [{'sex': 'Female', 'outcome': 'Fresh still-birth'}], 'type': 'x', 'female': 1},
        {'male': 1, 'place': 'home'},
    ]
    snapshot = copy.deepcopy(records)
    assert process_raw_data(records) == process_raw_data(records)
    assert prepare_preview_data(records) == prepare_preview_data(records)
    assert records == snapshot


def test_malformed_records_do_not_raise():
    records = [{'babies': 'oops'}, {'babies': [None, 5]}, {'mother': 'x', 'location': 3}]
    assert process_raw_data(records)['total'] == 4
    assert len(prepare_preview_data(records)) == 4


def test_get_month_dates():
    rng = get_month_dates('September 2025')
    assert (rng.start_date, rng.end_date) == ('2025-09-01', '2025-09-30')
    assert get_month_dates('february 2024').end_date == '2024-02-29'
    for bad in ('Sept 2025', 'September', '', 'September twenty'):
        with pytest.raises(ValueError):
            get_month_dates(bad)


def test_monthly_summary_groups_by_month():
    records = [
        {'dateOfNotification': '2025-09-11', 'babies': [{'birthWeight': 1800, 'outcome': 'Fresh still-birth'}]},
        {'dateOfNotification': '2025-09-20', 'babies': [{'birthWeight': 2200, 'outcome': 'Macerated'}]},
        {'dateOfNotification': '2025-08-02', 'female': 1},
        {'dateOfNotification': 'not a date'},
    ]
    items = monthly_summary(records)
    assert [i['month'] for i in items] == ['August 2025', 'September 2025']
    august, september = items
    assert august['avgWeight'] == 0
    assert august['sex']['female'] == 1
    assert september['total'] == 2
    assert september['avgWeight'] == 2000
    assert september['type'] == {'fresh': 1, 'macerated': 1}


def test_linelist_csv_has_display_headers():
    rows = prepare_preview_data([{'facility': 'Ward A', 'babies': [{'sex': 'Female', 'weight': 1800}]}])
    parsed = list(csv.reader(io.StringIO(linelist_csv(rows))))
    assert parsed[0] == ['Sex', 'Type', 'Facility', 'Date', 'Time', 'Weight (g)', 'Mother Age',
                         'Gestational Age', 'Delivery Place']
    assert parsed[1][:3] == ['Female', 'Unknown', 'Ward A']
    assert parsed[1][5] == '1800'


def test_boolean_values_render_as_missing():
    row = prepare_preview_data([{'weight': True, 'sex': True, 'facility': True, 'motherAge': False}])[0]
    assert row['weight'] == ''
    assert row['sex'] == 'Unknown'
    assert row['facility'] == 'Unknown'
    assert row['motherAge'] == ''
