from django.db import migrations, models


def _code(**kwargs):
    return models.CharField(blank=True, max_length=16, null=True, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('an', models.CharField(help_text='Admission number', max_length=64, unique=True, verbose_name='AN')),
                ('dob', models.DateField()),
                ('sex', models.CharField(choices=[('M', 'M'), ('F', 'F'), ('male', 'male'), ('female', 'female'), ('other', 'other')], max_length=10)),
                ('dateadm', models.DateTimeField(db_index=True)),
                ('timeadm', models.CharField(blank=True, max_length=16, null=True)),
                ('datedsc', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('timedsc', models.CharField(blank=True, max_length=16, null=True)),
                ('age', models.FloatField(blank=True, null=True)),
                ('ageday', models.FloatField(blank=True, null=True)),
                ('cc', models.TextField(blank=True, null=True)),
                ('pi', models.TextField(blank=True, null=True)),
                ('ph', models.TextField(blank=True, null=True)),
                ('fh', models.TextField(blank=True, null=True)),
                ('patient_examine', models.TextField(blank=True, null=True)),
                ('bt', models.CharField(blank=True, max_length=32, null=True)),
                ('pr', models.CharField(blank=True, max_length=32, null=True)),
                ('rr', models.CharField(blank=True, max_length=32, null=True)),
                ('bp', models.CharField(blank=True, max_length=32, null=True)),
                ('o2', models.CharField(blank=True, max_length=32, null=True)),
                ('pre_diagnosis', models.TextField(blank=True, null=True)),
                ('reason_for_admit', models.TextField(blank=True, null=True)),
                ('treatment_plan', models.TextField(blank=True, null=True)),
                ('pdx', _code(db_index=True)),
                ('sdx1', _code()),
                ('sdx2', _code()),
                ('sdx3', _code()),
                ('sdx4', _code()),
                ('sdx5', _code()),
                ('sdx6', _code()),
                ('sdx7', _code()),
                ('sdx8', _code()),
                ('sdx9', _code()),
                ('sdx10', _code()),
                ('sdx11', _code()),
                ('sdx12', _code()),
                ('proc1', _code()),
                ('proc2', _code()),
                ('proc3', _code()),
                ('proc4', _code()),
                ('proc5', _code()),
                ('proc6', _code()),
                ('proc7', _code()),
                ('proc8', _code()),
                ('proc9', _code()),
                ('proc10', _code()),
                ('proc11', _code()),
                ('proc12', _code()),
                ('proc13', _code()),
                ('proc14', _code()),
                ('proc15', _code()),
                ('proc16', _code()),
                ('proc17', _code()),
                ('proc18', _code()),
                ('proc19', _code()),
                ('proc20', _code()),
                ('drg', _code(db_index=True)),
                ('rw', models.FloatField(blank=True, null=True)),
                ('wtlos', models.FloatField(blank=True, null=True)),
                ('adjrw', models.FloatField(blank=True, null=True)),
                ('lengthofstay', models.FloatField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
    ]
