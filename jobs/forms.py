from django import forms

from .entities import JobStatus, ServiceType


class JobForm(forms.Form):
    """
    Formulário de criação / edição de um job.
    O cliente é escolhido entre os clientes do utilizador (passados no __init__).
    """
    name = forms.CharField(max_length=200, widget=forms.TextInput(attrs={'class': 'form-control'}))
    client_id = forms.ChoiceField(widget=forms.Select(attrs={'class': 'form-select'}), label="Cliente")
    service_type = forms.ChoiceField(choices=ServiceType.choices, initial=ServiceType.OTHER,
                                     widget=forms.Select(attrs={'class': 'form-select'}))
    deadline = forms.DateField(widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}))
    value = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2, label="Valor (R$)",
                               widget=forms.TextInput(attrs={'class': 'form-control'}))
    cost = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2, required=False, label="Custo (R$)",
                              widget=forms.TextInput(attrs={'class': 'form-control'}))
    is_recurring = forms.BooleanField(required=False, label="Job recorrente (mensal)")
    create_calendar_event = forms.BooleanField(required=False, label="Criar evento no calendário")
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 3}))

    def __init__(self, *args, **kwargs):
        clients = kwargs.pop('clients', [])
        super(JobForm, self).__init__(*args, **kwargs)
        self.fields['client_id'].choices = [(c.id, c.name) for c in clients]


class PaymentForm(forms.Form):
    amount = forms.DecimalField(
        label="Valor Pago (R$)",
        max_digits=12, decimal_places=2,
        widget=forms.TextInput(attrs={'class': 'form-control'})
    )
    date = forms.DateField(widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}))
    method = forms.CharField(max_length=50, required=False, widget=forms.TextInput(attrs={'class': 'form-control'}))
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))

    def clean_amount(self):
        amount = self.cleaned_data.get('amount')
        if amount is not None and amount <= 0:
            raise forms.ValidationError("O valor do pagamento deve ser maior que zero.")
        return amount


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=JobStatus.choices, widget=forms.Select(attrs={'class': 'form-select'}))


class ObservationForm(forms.Form):
    text = forms.CharField(widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 2}))


class CloudLinkForm(forms.Form):
    url = forms.URLField(widget=forms.URLInput(attrs={'class': 'form-control'}))
